"""Helpers for calls into the backend store."""

import logging
from collections.abc import Awaitable
from typing import TypeVar

from macro_planner.domain.errors import PersistenceError

T = TypeVar("T")

_logger = logging.getLogger(__name__)


async def call_store(awaitable: Awaitable[T], *, action: str) -> T:
    """Await a backend call, re-raising any failure as ``PersistenceError``."""
    try:
        return await awaitable
    except PersistenceError:
        raise
    except Exception as exc:
        _logger.exception("Backend store call failed: %s", action)
        raise PersistenceError(f"Backend store call failed: {action}") from exc
