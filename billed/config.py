# billed/config.py
import os

class Settings:
    def __init__(self):
        # The connection string MUST use "+psycopg"
        self.DATABASE_URL = os.getenv(
            "DATABASE_URL",
            "postgresql+psycopg://billed:billed@db:5432/billed"
        )
        self.UPLOAD_DIR = os.getenv("UPLOAD_DIR", "/app/uploads")
        self.UPLOAD_URL_PREFIX = os.getenv("UPLOAD_URL_PREFIX", "/uploads")
        self.MAX_RECEIPT_BYTES = int(os.getenv("MAX_RECEIPT_BYTES") or str(5 * 1024 * 1024))
        self.JWT_SECRET = os.getenv("JWT_SECRET", "dev-change-me")
        self.JWT_EXPIRE_MIN = int(os.getenv("JWT_EXPIRE_MIN") or "60")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.SEED_USERS = os.getenv("SEED_USERS", "0") == "1"

settings = Settings()
DATABASE_URL = settings.DATABASE_URL
UPLOAD_DIR = settings.UPLOAD_DIR
UPLOAD_URL_PREFIX = settings.UPLOAD_URL_PREFIX
