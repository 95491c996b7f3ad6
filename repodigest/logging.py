"""Logger hierarchy for repodigest.

repodigest is a library: it only creates loggers under the ``repodigest``
namespace and leaves handlers and levels to the embedding application.
"""

from __future__ import annotations

import logging

_LOGGER_NAME = "repodigest"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the repodigest hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


__all__ = ["get_logger"]
