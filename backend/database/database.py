import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings

# Hybrid DB Support: Postgres (Supabase) when a connection string is configured,
# otherwise a local SQLite file under DATA_DIR.
SQLALCHEMY_DATABASE_URL = settings.SUPABASE_DB_URL

if not SQLALCHEMY_DATABASE_URL:
    os.makedirs(settings.DATA_DIR, exist_ok=True)
    SQLALCHEMY_DATABASE_URL = f"sqlite:///{os.path.join(settings.DATA_DIR, 'channelcast.db')}"

connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()