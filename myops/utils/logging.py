from __future__ import annotations

import logging
import time

_LAST: dict[str, float] = {}
_MAX_CODES = 256


def warn_once(logger: logging.Logger, code: str, message: str, window: float = 60) -> bool:
    """Log ``message`` at most once per ``window`` seconds for ``code``.

    Returns ``True`` when the warning was emitted. The cache of codes is
    bounded; the stalest entry is dropped when it fills up.
    """
    now = time.monotonic()
    last = _LAST.get(code)
    if last is not None and now - last <= window:
        logger.debug("%s (suppressed): %s", code, message)
        return False
    if len(_LAST) >= _MAX_CODES:
        oldest = min(_LAST, key=_LAST.get)
        _LAST.pop(oldest, None)
    _LAST[code] = now
    logger.warning("%s: %s", code, message)
    return True


def reset_warnings() -> None:
    """Forget every code seen so far."""
    _LAST.clear()


__all__ = ["reset_warnings", "warn_once"]
