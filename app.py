"""ASGI entry point: ``uvicorn app:app``."""

import logging

from api.main import create_app
from config.settings import Settings

settings = Settings.from_env()

logging.basicConfig(
    level=logging.DEBUG if settings.verbose else logging.INFO,
    format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
)

app = create_app(settings)
