"""Protocol for objects driven by the host's frame callbacks."""

from typing import Protocol


class FrameHandlerProtocol(Protocol):
    """Callbacks invoked once per host frame."""

    def update(self) -> None:
        """Engine-side frame callback: run the scheduler."""
        ...

    async def gui_update(self) -> None:
        """Presentation-side frame callback: replicate pending changes."""
        ...
