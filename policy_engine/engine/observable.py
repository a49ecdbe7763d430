"""
Reactive primitives for the Policy Engine.

A minimal push-based stream model: an Observable is anything that can be
subscribed to with a callback, a BehaviorSubject holds the latest value and
replays it to each new subscriber, and operators derive new Observables
that recompute whenever their sources emit.

Rules:
- Subscribers receive the current value on subscribe, then every change
- Notification uses a snapshot of the subscriber registry
- An error raised while delivering the current value on subscribe
  propagates to the subscriber
- An error raised by one subscriber on next() is logged and does not stop
  delivery to the others
- Delivery for one subject is serialized, so concurrent writers are
  observed in the order their values were stored
"""

import logging
from threading import Lock, RLock
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

_MISSING = object()


class Subscription:
    """Handle returned by subscribe(); call unsubscribe() to stop receiving values."""

    def __init__(self, teardown: Optional[Callable[[], None]] = None):
        self._teardown = teardown
        self.closed = False

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._teardown is not None:
            self._teardown()


class Observable:
    """A lazily evaluated push sequence."""

    def __init__(self, subscribe_fn: Callable[[Callable[[Any], None]], Subscription]):
        self._subscribe_fn = subscribe_fn

    def subscribe(self, on_next: Callable[[Any], None]) -> Subscription:
        """Register on_next for every value this sequence produces."""
        return self._subscribe_fn(on_next)

    def map(self, fn: Callable[[Any], Any]) -> "Observable":
        """Derive a sequence that emits fn(value) for each source value."""
        return Observable(lambda on_next: self.subscribe(lambda value: on_next(fn(value))))

    def switch_map(self, fn: Callable[[Any], "Observable"]) -> "Observable":
        """
        Derive a sequence that follows the inner Observable built from the
        latest source value, dropping the previous inner subscription.
        """

        def subscribe(on_next: Callable[[Any], None]) -> Subscription:
            inner: List[Optional[Subscription]] = [None]

            def on_outer(value: Any) -> None:
                if inner[0] is not None:
                    inner[0].unsubscribe()
                inner[0] = fn(value).subscribe(on_next)

            outer = self.subscribe(on_outer)

            def teardown() -> None:
                outer.unsubscribe()
                if inner[0] is not None:
                    inner[0].unsubscribe()

            return Subscription(teardown)

        return Observable(subscribe)

    def first(self) -> Any:
        """
        Return the current value of this sequence.

        Raises:
            LookupError: If the sequence has not produced a value on subscribe
        """
        values: List[Any] = []
        subscription = self.subscribe(values.append)
        subscription.unsubscribe()
        if not values:
            raise LookupError("Observable produced no value")
        return values[0]

    @staticmethod
    def of(value: Any) -> "Observable":
        """A sequence that emits value once to each subscriber."""

        def subscribe(on_next: Callable[[Any], None]) -> Subscription:
            on_next(value)
            return Subscription()

        return Observable(subscribe)


class BehaviorSubject(Observable):
    """
    Holds a current value and pushes every new value to its subscribers.
    """

    def __init__(self, value: Any = None):
        super().__init__(self._subscribe)
        self._value = value
        self._subscribers: Dict[object, Callable[[Any], None]] = {}
        self._lock = Lock()
        self._emit_lock = RLock()

    @property
    def value(self) -> Any:
        with self._lock:
            return self._value

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def next(self, value: Any) -> None:
        """Replace the current value and notify every subscriber."""
        with self._emit_lock:
            with self._lock:
                self._value = value
                subscribers = list(self._subscribers.values())

            for callback in subscribers:
                self._deliver(callback, value)

    def _subscribe(self, on_next: Callable[[Any], None]) -> Subscription:
        token = object()
        with self._emit_lock:
            with self._lock:
                self._subscribers[token] = on_next
                value = self._value

            try:
                on_next(value)
            except Exception:
                self._remove(token)
                raise
        return Subscription(lambda: self._remove(token))

    def _remove(self, token: object) -> None:
        with self._lock:
            self._subscribers.pop(token, None)

    @staticmethod
    def _deliver(callback: Callable[[Any], None], value: Any) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception("Error in subscriber callback")


def combine_latest(*sources: Observable) -> Observable:
    """
    Combine sources into a sequence of tuples holding each source's latest
    value. Emits once every source has produced a value, then on each change.
    """

    def subscribe(on_next: Callable[[Any], None]) -> Subscription:
        latest: List[Any] = [_MISSING] * len(sources)

        def make_handler(index: int) -> Callable[[Any], None]:
            def on_value(value: Any) -> None:
                latest[index] = value
                if all(item is not _MISSING for item in latest):
                    on_next(tuple(latest))

            return on_value

        subscriptions: List[Subscription] = []

        def teardown() -> None:
            for subscription in subscriptions:
                subscription.unsubscribe()

        try:
            for i, source in enumerate(sources):
                subscriptions.append(source.subscribe(make_handler(i)))
        except Exception:
            teardown()
            raise

        return Subscription(teardown)

    return Observable(subscribe)
