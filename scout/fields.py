"""
Best-effort field extraction.

Every field of a listing tile or detail page is read through
:func:`extract_or_default`, so a missing selector, a malformed value or a
node that went stale costs one field and never the whole record.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

FieldGetter = Callable[[], Awaitable[Any]]

STALE_ATTEMPTS = 3


def _never_transient(_: BaseException) -> bool:
    return False


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


async def extract_or_default(
    getter: FieldGetter,
    default: Any,
    *,
    field: str,
    attempts: int = STALE_ATTEMPTS,
    is_transient: Callable[[BaseException], bool] = _never_transient,
) -> Any:
    """Await *getter* and return its value, or *default* when it yields nothing.

    Transient errors (a node detached from the document) are retried up to
    *attempts* times in total; any other error falls back at once.
    """
    for attempt in range(1, attempts + 1):
        try:
            value = await getter()
        except Exception as exc:  # noqa: BLE001
            if is_transient(exc) and attempt < attempts:
                logger.debug("Field %s stale (attempt %d/%d): %s", field, attempt, attempts, exc)
                continue
            if is_transient(exc):
                logger.warning("Field %s still stale after %d attempts, using default", field, attempts)
            else:
                logger.debug("Field %s unavailable: %s", field, exc)
            return default
        if _is_blank(value):
            return default
        return value.strip() if isinstance(value, str) else value
    return default


async def extract_fields(
    getters: Mapping[str, FieldGetter],
    defaults: Mapping[str, Any],
    *,
    is_transient: Callable[[BaseException], bool] = _never_transient,
    attempts: int = STALE_ATTEMPTS,
) -> Dict[str, Any]:
    """Apply :func:`extract_or_default` to every getter, independently."""
    out: Dict[str, Any] = {}
    for name, getter in getters.items():
        out[name] = await extract_or_default(
            getter,
            defaults.get(name, ""),
            field=name,
            attempts=attempts,
            is_transient=is_transient,
        )
    return out


def first_present(payload: Mapping[str, Any], *keys: str) -> Optional[Any]:
    """Return the first non-blank value among *keys*."""
    for key in keys:
        value = payload.get(key)
        if not _is_blank(value):
            return value
    return None


def deferred(fn: Callable[..., Any], *args: Any) -> FieldGetter:
    """Wrap a plain function call as a :data:`FieldGetter`."""

    async def getter() -> Any:
        return fn(*args)

    return getter
