"""Frame driver invoking the frame callbacks at a fixed wall-clock rate."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from transit_timetables.domain.contracts.frame_handler import (
    FrameHandlerProtocol,  # noqa: TC001 - Runtime dependency: used in __init__ signature
)

logger = logging.getLogger(__name__)


class FrameDriver:
    """Plays the role of the host's frame loop.

    Every frame advances simulated time by the frame interval scaled by
    time_scale, then calls the handler's engine and presentation callbacks.
    """

    def __init__(
        self,
        handler: FrameHandlerProtocol,
        frame_interval_ms: int = 200,
        time_scale: float = 1.0,
        advance: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize the frame driver.

        Args:
            handler: Receives update and gui_update once per frame.
            frame_interval_ms: Wall-clock milliseconds between frames.
            time_scale: Simulated seconds per wall-clock second.
            advance: Moves the host simulation forward by simulated seconds.
        """
        self.handler = handler
        self.frame_interval_ms = frame_interval_ms
        self.time_scale = time_scale
        self.advance = advance
        self.frames_run = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the frame loop."""
        if self.running:
            logger.warning("Frame driver already running")
            return
        self._task = asyncio.create_task(self._frame_loop())
        logger.info(
            f"Started frame driver ({self.frame_interval_ms} ms per frame, "
            f"time scale {self.time_scale})"
        )

    async def stop(self) -> None:
        """Stop the frame loop."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                logger.info("Frame driver cancelled")
            logger.info("Stopped frame driver")

    async def wait(self) -> None:
        """Block until the frame loop ends."""
        if self._task is not None:
            await self._task

    async def _frame_loop(self) -> None:
        try:
            while True:
                await self.run_frame()
                await asyncio.sleep(self.frame_interval_ms / 1000)
        except asyncio.CancelledError:
            logger.info("Frame driver cancelled")
            raise

    async def run_frame(self) -> None:
        """Run one frame; a failing callback is logged and the next frame runs anyway."""
        try:
            if self.advance is not None:
                self.advance(self.frame_interval_ms / 1000 * self.time_scale)
            self.handler.update()
            await self.handler.gui_update()
        except Exception as e:
            logger.error(f"Error in frame {self.frames_run}: {e}", exc_info=True)
        self.frames_run += 1
