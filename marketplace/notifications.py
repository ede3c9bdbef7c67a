# marketplace/notifications.py
import threading
from typing import Callable, Optional

from .log import get_logger

logger = get_logger(__name__)


class Notifier:
    """
    Holds the transient success banner. Showing a message starts an
    auto-dismiss timer; showing another one replaces both message and timer.
    """

    def __init__(self, duration: float = 5.0, timer_factory: Callable[..., threading.Timer] = threading.Timer):
        self.duration = duration
        self._timer_factory = timer_factory
        self._timer: Optional[threading.Timer] = None
        self._message: Optional[str] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def message(self) -> Optional[str]:
        return self._message

    def show(self, message: str) -> None:
        with self._lock:
            self._cancel_timer()
            self._message = message
            self._generation += 1
            timer = self._timer_factory(self.duration, self._expire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
        timer.start()

    def _expire(self, generation: int) -> None:
        with self._lock:
            # a newer message owns the banner now
            if generation != self._generation:
                return
            self._message = None
            self._timer = None
        logger.debug("Notification auto-dismissed")

    def dismiss(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._message = None

    cancel = dismiss

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
