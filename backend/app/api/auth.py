import logging
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from app.core.config import settings

logger = logging.getLogger(__name__)

security = HTTPBasic(realm="Admin Area", auto_error=False)

def require_admin(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    """Basic auth guard for routes that mutate the schedule."""
    authorized = False
    if credentials is not None and settings.ADMIN_USER and settings.ADMIN_PASS:
        user_ok = secrets.compare_digest(credentials.username.encode(), settings.ADMIN_USER.encode())
        pass_ok = secrets.compare_digest(credentials.password.encode(), settings.ADMIN_PASS.encode())
        authorized = user_ok and pass_ok

    if not authorized:
        if credentials is not None:
            logger.warning(f"Rejected admin login for user '{credentials.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
            headers={"WWW-Authenticate": 'Basic realm="Admin Area"'},
        )
    return credentials.username
