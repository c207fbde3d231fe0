import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with a single stderr handler.

    Call this ONCE at startup (main.py). Module code only does
    logging.getLogger(__name__).
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Evite les doublons si uvicorn --reload réimporte main
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    root.addHandler(handler)

    # SQLAlchemy est trop bavard en INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.captureWarnings(True)
