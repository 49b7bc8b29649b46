import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    root.setLevel(level)

    # Uvicorn reloads import the app twice; keep a single console handler.
    for handler in list(root.handlers):
        if getattr(handler, "_vms_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._vms_handler = True
    root.addHandler(handler)

    # SQL echo is far too chatty at INFO.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
