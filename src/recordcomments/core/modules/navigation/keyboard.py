"""Keyboard handling shared by every mention dropdown list."""

from collections.abc import Awaitable, Callable

NEXT_KEYS = frozenset({"ArrowDown"})
PREVIOUS_KEYS = frozenset({"ArrowUp"})
ACTIVATE_KEYS = frozenset({"Enter", "Tab"})
BACK_KEYS = frozenset({"Escape", "Backspace"})


class ListNavigator:
    """Bounded highlight index over a list.

    The index is clamped at both ends (no wraparound). Activation and back-out are
    delegated to the owner, so keyboard use behaves exactly like clicking.
    """

    def __init__(
        self,
        on_activate: Callable[[int], Awaitable[None]],
        on_back: Callable[[], Awaitable[None]],
    ) -> None:
        self._on_activate = on_activate
        self._on_back = on_back
        self._length = 0
        self.index = 0

    @property
    def length(self) -> int:
        return self._length

    def reset(self, length: int) -> None:
        """Point at the first item of a new list."""
        self._length = max(length, 0)
        self.index = 0

    def move(self, delta: int) -> None:
        if self._length == 0:
            self.index = 0
            return
        self.index = min(max(self.index + delta, 0), self._length - 1)

    async def handle_key(self, key: str) -> bool:
        """Apply a key press; returns True when the key belongs to the list."""
        if key in NEXT_KEYS:
            self.move(1)
        elif key in PREVIOUS_KEYS:
            self.move(-1)
        elif key in ACTIVATE_KEYS:
            if self._length > 0:
                await self._on_activate(self.index)
        elif key in BACK_KEYS:
            await self._on_back()
        else:
            return False
        return True
