"""Application settings and validation."""

import os
from pathlib import Path
from typing import List

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_HOURS: int
    DATABASE_URL: str
    ALLOWED_ORIGINS: List[str]
    UPLOAD_DIR: Path
    MAX_IMAGE_BYTES: int
    MAX_SHOP_IMAGE_BYTES: int
    LOGIN_MAX_FAILURES: int
    LOGIN_WINDOW_SECONDS: int
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change_me_for_prod")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'pethub.db'}")
        self.ALLOWED_ORIGINS = _split_origins(os.getenv("ALLOWED_ORIGINS", "*"))
        self.UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(BASE / "public" / "uploads"))).expanduser().resolve()
        self.MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", str(5 * 1024 * 1024)))  # pets, posts, avatars
        self.MAX_SHOP_IMAGE_BYTES = int(os.getenv("MAX_SHOP_IMAGE_BYTES", str(15 * 1024 * 1024)))
        self.LOGIN_MAX_FAILURES = int(os.getenv("LOGIN_MAX_FAILURES", "10"))
        self.LOGIN_WINDOW_SECONDS = int(os.getenv("LOGIN_WINDOW_SECONDS", "300"))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    def _validate(self):
        if self.ENV != "dev" and self.JWT_SECRET == "change_me_for_prod":
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.JWT_EXPIRE_HOURS <= 0:
            raise RuntimeError("JWT_EXPIRE_HOURS must be positive")


def _split_origins(raw: str) -> List[str]:
    raw = raw.strip()
    if not raw or raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


settings = Settings()
