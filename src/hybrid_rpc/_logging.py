"""Library logging helpers.

Loggers live under the ``hybrid_rpc`` namespace and stay silent unless the
application configures a handler.
"""

import logging

_ROOT = "hybrid_rpc"

logging.getLogger(_ROOT).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the hybrid_rpc namespace."""
    if name != _ROOT and not name.startswith(_ROOT + "."):
        name = f"{_ROOT}.{name}"
    return logging.getLogger(name)
