"""ASGI entry point: ``uvicorn tasktracker.main:app``."""

import uvicorn

from tasktracker.app import create_app
from tasktracker.config import get_settings
from tasktracker.logging_setup import setup_logging

settings = get_settings()
setup_logging(settings.log_level)

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run("tasktracker.main:app", host="0.0.0.0", port=8000, reload=settings.is_development)
