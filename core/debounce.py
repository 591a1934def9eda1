# core/debounce.py
import threading
from typing import Any, Callable, Optional

from .logger import get_logger

logger = get_logger(__name__)


class Debouncer:
    """
    Delays `trigger` until calls have been quiet for `delay_ms`.

    Every call cancels the pending timer (if any) and schedules a new one with
    that call's arguments, so only the last call of a burst fires. `cancel()`
    drops the pending call. `timer_factory` must build an object with
    `start()` and `cancel()` from `(seconds, function, args)`, like
    `threading.Timer`.
    """

    def __init__(
        self,
        trigger: Callable[..., Any],
        delay_ms: float,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be non-negative, got {delay_ms}")
        self.trigger = trigger
        self.delay_ms = delay_ms
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[Any] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            timer = self._timer_factory(
                self.delay_ms / 1000.0,
                self._fire,
                args=(self._generation, args, kwargs),
            )
            # Timer threads must not keep the interpreter alive on exit
            if hasattr(timer, "daemon"):
                timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> bool:
        """Drop the pending call. Returns True if one was pending."""
        with self._lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
            self._generation += 1
            return True

    def _fire(self, generation: int, args: tuple, kwargs: dict) -> None:
        with self._lock:
            # a newer call or cancel() may have raced this timer
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
        try:
            self.trigger(*args, **kwargs)
        except Exception as e:
            logger.exception("Debounced trigger %r failed: %s", self.trigger, e)


def debounce(trigger: Callable[..., Any], delay_ms: float, **kwargs: Any) -> Debouncer:
    return Debouncer(trigger, delay_ms, **kwargs)
