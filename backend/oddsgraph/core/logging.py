import logging
import sys

from pythonjsonlogger import jsonlogger

from oddsgraph.core.config import get_settings


def setup_logging(level: str | None = None) -> None:
    """Install one JSON handler on the root logger; later calls are no-ops."""
    settings = get_settings()
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
            static_fields={"service": settings.app_name, "env": settings.app_env},
        )
    )

    root_logger.setLevel((level or settings.log_level).upper())
    root_logger.addHandler(handler)

    # The Odds API takes its key as a query parameter; keep request URLs out of the logs.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
