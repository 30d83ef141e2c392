"""Application Bootstrap (Entry Point)."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .cli import app
from .config import Settings, get_settings

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB
LOG_FILE_BACKUP_COUNT = 3

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"

# Provider SDKs and model downloads log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "sentence_transformers", "urllib3")

_HANDLER_TAG = "_parklens_handler"


def _logging_target() -> tuple[Path, str]:
    try:
        settings = get_settings()
    except Exception as e:
        print(f"Warning: Failed to load settings for logging: {e}", file=sys.stderr)
        fields = Settings.model_fields
        return fields["log_file"].default, fields["log_level"].default
    return settings.log_file, settings.log_level


def _build_handlers(log_file: Path) -> list[logging.Handler]:
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    file_handler.setLevel(logging.DEBUG)

    # stderr stays quiet so rich tables and --json output are readable
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    console_handler.setLevel(logging.WARNING)

    handlers: list[logging.Handler] = [file_handler, console_handler]
    for handler in handlers:
        setattr(handler, _HANDLER_TAG, True)
    return handlers


def setup_logging(level: Optional[str] = None) -> Path:
    """Configure application-wide logging.

    Writes everything to a rotating log file and WARNING+ to stderr. The root
    level comes from ``level`` or PARKLENS_LOG_LEVEL (default INFO). Calling
    it again replaces the handlers installed by the previous call.

    Returns:
        Path of the log file in use.
    """
    log_file, log_level = _logging_target()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    root_logger.setLevel(getattr(logging, (level or log_level).upper()))
    for handler in _build_handlers(log_file):
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return log_file


def main() -> None:
    """Main entry point for the parklens CLI."""
    setup_logging()
    app()


if __name__ == "__main__":
    main()
