# logging_setup.py
import logging

from config import Config

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(config: Config) -> logging.Handler:
    """Sends application logs to a file in the data directory.

    The terminal belongs to the UI for the whole session, so nothing is ever
    written to stdout or stderr from here.
    """
    config.data_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(config.log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, logging.FileHandler) and existing.baseFilename == handler.baseFilename:
            root.removeHandler(existing)
            existing.close()
    root.addHandler(handler)
    root.setLevel(config.log_level)
    # urllib3 and PIL are chatty at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    return handler
