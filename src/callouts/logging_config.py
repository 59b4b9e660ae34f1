import logging
import os

LOG_LEVEL_ENV = "CALLOUTS_LOG_LEVEL"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def resolve_level(default_level: int = logging.INFO, debug: bool = False) -> int:
    """Pick the log level: --debug wins, then CALLOUTS_LOG_LEVEL, then the default."""
    if debug:
        return logging.DEBUG
    level_name = os.getenv(LOG_LEVEL_ENV)
    if level_name:
        return getattr(logging, level_name.strip().upper(), default_level)
    return default_level


def configure_logging(default_level: int = logging.INFO, debug: bool = False) -> int:
    """Configure the root logger for callout tooling and return the level applied.

    Scheduler modules only ever log through module-level loggers; hosts that
    already configured logging can skip this entirely.
    """
    level = resolve_level(default_level, debug=debug)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("callouts").setLevel(level)
    return level
