import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Explicitly load .env file before defining Settings
env_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), ".env")
load_dotenv(env_path)

class Settings(BaseSettings):
    PROJECT_NAME: str = "File Share"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Public frontend address, used to build absolute share links
    BASE_URL: str = "http://localhost:5173"

    # Database
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///./fileshare.db"

    # Object storage
    GCS_BUCKET_NAME: str = "file-share"
    GCS_PROJECT: str = ""
    # Emulator or S3-compatible gateway address; empty means the real GCS API
    GCS_API_ENDPOINT: str = ""
    STORAGE_KEY_PREFIX: str = "file-share-app"
    SIGNED_URL_TTL_HOURS: int = 24

    # Share lifecycle
    DEFAULT_EXPIRY_DAYS: int = 10
    SHORT_CODE_BYTES: int = 6

    # Email
    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_FROM: str = "noreply@example.com"
    MAIL_PORT: int = 587
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_FROM_NAME: str = "File Share App"
    MAIL_STARTTLS: bool = True
    MAIL_SSL_TLS: bool = False
    USE_CREDENTIALS: bool = True
    VALIDATE_CERTS: bool = True

    class Config:
        case_sensitive = True

settings = Settings()
