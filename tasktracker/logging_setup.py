import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Send tasktracker and uvicorn logs to stderr. Call once, before the server starts."""
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")
    )
    root.handlers[:] = [handler]

    # SQL echo is noisy even at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
