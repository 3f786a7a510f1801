import logging
import sys

FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False

def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the root logger; later calls only adjust the level."""
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(FORMAT))
    root.addHandler(handler)
    _configured = True
