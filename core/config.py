"""
Настройки дашборда продавца. Всё читается из окружения (и .env, если есть).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

ROOT_DIR = Path(__file__).resolve().parent.parent
DEFAULT_API_URL = "http://localhost:5000/api"


class Settings:
    """Настройки приложения из переменных окружения."""

    def __init__(self) -> None:
        # Remote API
        self.API_URL: str = os.environ.get("API_URL", DEFAULT_API_URL)
        self.API_TIMEOUT: float = float(os.environ.get("API_TIMEOUT", "10"))
        self.AUTH_TOKEN: Optional[str] = os.environ.get("AUTH_TOKEN") or None

        # Фолбэк-датасет, пока бэкенда нет
        self.SEED_PATH: Path = Path(
            os.environ.get("SEED_PATH", str(ROOT_DIR / "data" / "seed.json"))
        )

        self.LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


settings = Settings()
