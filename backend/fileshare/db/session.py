from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fileshare.core.config import settings

# SQLite specific configuration for multi-threading
connect_args = {"check_same_thread": False} if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite") else {}

engine = create_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    pool_pre_ping=True,
    connect_args=connect_args
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
