"""
Observable value holder.

Holds one value and calls every listener synchronously when the value
changes.  The controller exposes its ratio index, preview asset and
crop-view readiness through these so any UI layer can bind to them.
"""

from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class ObservableValue(Generic[T]):
    """A value that notifies listeners on change."""

    def __init__(self, value: T):
        self._value = value
        self._listeners: list[Callable[[T], None]] = []
        self._disposed = False

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._check_alive()
        if new_value == self._value:
            return
        self._value = new_value
        # Copy so a listener may unsubscribe itself while being notified
        for listener in list(self._listeners):
            listener(new_value)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add_listener(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register *listener* and return a callable that removes it again."""
        self._check_alive()
        self._listeners.append(listener)
        return lambda: self.remove_listener(listener)

    def remove_listener(self, listener: Callable[[T], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispose(self) -> None:
        """Drop all listeners; the holder can no longer be changed."""
        if self._disposed:
            return
        self._listeners.clear()
        self._disposed = True

    def _check_alive(self) -> None:
        if self._disposed:
            raise RuntimeError("ObservableValue used after dispose()")

    def __repr__(self) -> str:
        return f"ObservableValue({self._value!r})"
