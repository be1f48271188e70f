"""Trailing-edge debounce for the asyncio event loop.

The engine validates only when asked; "validate as you type" callers wrap
``store.validate_field`` in a debouncer so only the latest call within the
wait window runs.

Usage:
    validate_email = Debounced(store.validate_field, wait=0.25)
    validate_email("email")     # schedules
    validate_email("email")     # reschedules with the latest arguments
    await validate_email.flush()

    @debounce(0.25)
    async def save_draft(values): ...
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from formstate.config import get_settings
from formstate.logging import get_logger

log = get_logger("formstate.debounce")


class Debounced:
    """Cancelable trailing-edge debouncer that keeps the latest call's arguments."""

    def __init__(self, fn: Callable[..., Any], wait: float | None = None):
        self._fn = fn
        self.wait = get_settings().DEBOUNCE_SECONDS if wait is None else wait
        self._timer: asyncio.Task | None = None
        self._pending_args: tuple[tuple, dict] | None = None
        self._running: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self.cancel()
        self._pending_args = (args, kwargs)
        self._timer = asyncio.get_running_loop().create_task(self._fire_later())
        self._running.add(self._timer)
        self._timer.add_done_callback(self._running.discard)

    def cancel(self) -> None:
        """Drop the pending call, if any. Calls already running are left alone."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending_args = None

    async def flush(self) -> Any:
        """Run the pending call now and return its result; None when nothing is pending."""
        if not self.pending or self._pending_args is None:
            return None
        args, kwargs = self._pending_args
        self.cancel()
        return await self._invoke(args, kwargs)

    async def _invoke(self, args: tuple, kwargs: dict) -> Any:
        result = self._fn(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _fire_later(self) -> None:
        await asyncio.sleep(self.wait)
        args, kwargs = self._pending_args or ((), {})
        self._timer = None
        self._pending_args = None
        try:
            await self._invoke(args, kwargs)
        except Exception as exc:
            # no caller is awaiting a timer-fired call
            log.error("debounced_call_failed", function=getattr(self._fn, "__qualname__", repr(self._fn)),
                error=str(exc), exc_info=True)


def debounce(wait: float | None = None):
    """Decorator form of ``Debounced``.

    Usage:
        @debounce(0.3)
        async def validate(name): ...
    """
    def decorator(fn: Callable[..., Any]) -> Debounced:
        return Debounced(fn, wait)
    return decorator
