class ValidationError(Exception):
    """Client supplied a schedule request that cannot be placed (missing or unparseable fields)."""


class PersistenceError(Exception):
    """The schedule snapshot store could not be read or written."""
