import logging
import logging.handlers
import sys
from pathlib import Path

_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(settings) -> logging.Logger:
    """Configure root logging: stdout always, plus a rotating file when LOG_FILE is set."""
    fmt = logging.Formatter(_FORMAT)
    level = getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)

    logger = logging.getLogger()  # root
    logger.setLevel(level)

    # avoid duplicate handlers when the app is created more than once (tests, reload)
    if not any(h.get_name() == "spacevox.stdout" for h in logger.handlers):
        stream = logging.StreamHandler(sys.stdout)
        stream.setFormatter(fmt)
        stream.set_name("spacevox.stdout")
        logger.addHandler(stream)

        if settings.LOG_FILE:
            log_path = Path(settings.LOG_FILE).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
            )
            handler.setFormatter(fmt)
            handler.set_name("spacevox.file")
            logger.addHandler(handler)

    # uvicorn installs its own handlers; keep its level in step with ours
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "apscheduler"):
        logging.getLogger(name).setLevel(level)

    return logger
