import sys
from pathlib import Path
from loguru import logger

from curriculum_assets.config.settings import get_settings


def configure_logging(log_level: str | None = None, log_dir: str | None = None) -> None:
    settings = get_settings()
    level = (log_level or settings.log_level).upper()

    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    directory = Path(log_dir or settings.log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    logger.add(
        directory / "curriculum_assets.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level=level,
        rotation="10 MB",
        retention="7 days",
        compression="zip",
    )


__all__ = ["logger", "configure_logging"]
