"""Logger wiring for the service.

All modules log below the `buttons_api` logger; one stream handler with a
bare message format is attached here so structured dict lines stay readable.
"""

from __future__ import annotations

import logging

from flask import g, has_request_context

ROOT_LOGGER = "buttons_api"


class RequestIdFilter(logging.Filter):
    """Stamp records with the current request id (or '-') for formatters that want it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = getattr(g, "request_id", "-") if has_request_context() else "-"
        return True


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    log = logging.getLogger(ROOT_LOGGER)
    # Avoid duplicate attachment when the factory runs more than once (tests)
    if not any(getattr(h, "_buttons_api", False) for h in log.handlers):
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(message)s"))
        h.addFilter(RequestIdFilter())
        h._buttons_api = True  # type: ignore[attr-defined]
        log.addHandler(h)
    log.setLevel(level if isinstance(level, int) else logging.getLevelName(str(level).upper()))
    return log


__all__ = ["ROOT_LOGGER", "RequestIdFilter", "configure_logging"]
