import uvicorn

from .config import Settings
from .logging_setup import setup_logging


def run() -> None:
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    uvicorn.run(
        "tasktracker.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
