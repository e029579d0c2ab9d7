import sys
from pathlib import Path

from loguru import logger

from propbot.config.schema import Config
from propbot.utils.pii import sanitize_message


def mask_record(record) -> None:
    """Loguru patcher that masks phone numbers and e-mails in the message."""
    record["message"] = sanitize_message(record["message"])


def configure_logger(config: Config) -> None:
    """Configure loguru logger based on settings."""
    logger.remove()  # Remove default handler

    if not config.logging.enabled:
        return

    if config.logging.mask_pii:
        logger.configure(patcher=mask_record)

    # Console (stderr)
    logger.add(sys.stderr, level=config.logging.level)

    # File
    if config.logging.file_enabled:
        path = Path(config.logging.file_path).expanduser()
        logger.add(
            path,
            rotation=config.logging.rotation,
            retention=config.logging.retention,
            level=config.logging.level,
            enqueue=True,  # Async safe
        )
