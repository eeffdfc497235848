"""
Logging setup for the command line
"""

import logging

LOG_FORMAT = "[%(name)s][%(levelname)s] %(message)s"

def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once for CLI use"""
    root = logging.getLogger()
    # Keep handlers installed by the host application
    if root.handlers:
        root.setLevel(level.upper())
        return
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # httpx logs every request at INFO, which drowns out the poller
    logging.getLogger("httpx").setLevel(logging.WARNING)
