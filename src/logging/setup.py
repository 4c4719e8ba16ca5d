import sys
import logging
from typing import Any, Callable, Dict

from loguru import logger

from src.config.settings import AppSettings

SENSITIVE_KEYS = ["key", "token", "password", "secret", "authorization"]
MASK = "********"


def mask_secret(value: str) -> str:
    """Keeps the first and last four characters of long secrets."""
    if len(value) > 8:
        return value[:4] + "****" + value[-4:]
    return MASK


def make_sensitive_data_filter(
    settings: AppSettings,
) -> Callable[[Dict[str, Any]], bool]:
    """Builds a loguru filter masking the API token and secret-named extras."""
    secrets = [s for s in (settings.webflow_api_token,) if s]

    def sensitive_data_filter(record: Dict[str, Any]) -> bool:
        extra = record.get("extra")
        if isinstance(extra, dict):
            for extra_key, extra_value in extra.items():
                if any(sk in extra_key.lower() for sk in SENSITIVE_KEYS):
                    extra[extra_key] = (
                        mask_secret(extra_value)
                        if isinstance(extra_value, str)
                        else MASK
                    )

        for secret in secrets:
            if secret in record["message"]:
                record["message"] = record["message"].replace(secret, MASK)

        return True  # Keep the record after masking

    return sensitive_data_filter


class InterceptHandler(logging.Handler):
    """Routes standard logging records (httpx, httpcore) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(settings: AppSettings) -> None:
    """Configures Loguru logger based on application settings."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=True,
        filter=make_sensitive_data_filter(settings),
    )

    logger.info(f"Logging initialized with level: {settings.log_level}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # httpx logs every request at INFO; keep it out of the normal run output
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logger.debug("Standard logging intercepted.")
