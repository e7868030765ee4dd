"""Slideshow scheduler — independent render and show loops.

Pure asyncio, no USB or imaging imports; talks to the transport through
``is_available()`` / ``display()`` and to the image producer through
``render_screen(index)``.

Render loop (fixed 1 s tick):
    device unavailable → render cursor back to 0, nothing else.
    slide at cursor stale (never rendered, or refresh_seconds elapsed)
    → re-render it.  Cursor advances every tick.

Show loop (delay computed per tick):
    device unavailable → show cursor back to 0, wait 5 s.
    slide has an image → display it, advance, wait show_seconds.
    slide has no image → burn one retry; when retries run out, reset them
    and advance anyway.  Wait 1 s.

The two cursors drift apart freely.  Slide images are only replaced as
whole references, so the show loop sees either the old or the new render,
never a partial one.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Sequence

from ..constants import (
    DEFAULT_SHOW_RETRIES,
    MISSING_IMAGE_RETRY_S,
    RENDER_TICK_S,
    UNAVAILABLE_BACKOFF_S,
)
from ..core.models import SlideConfig, SlideState

log = logging.getLogger(__name__)


class SlideShow:
    """Cycles configured slides onto the frame."""

    def __init__(
        self,
        transport: Any,
        producer: Any,
        slides: Sequence[SlideConfig],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        render_interval: float = RENDER_TICK_S,
        default_retries: int = DEFAULT_SHOW_RETRIES,
    ) -> None:
        if not slides:
            raise ValueError("SlideShow needs at least one slide")
        self._transport = transport
        self._producer = producer
        self._clock = clock
        self._sleep = sleep
        self._render_interval = render_interval
        self._default_retries = default_retries
        self._slides = [SlideState(config=s, retries=default_retries) for s in slides]
        self._render_index = 0
        self._show_index = 0
        self._tasks: list[asyncio.Task] = []

    # ── Read-only state ──────────────────────────────────────────────

    @property
    def slides(self) -> list[SlideState]:
        return self._slides

    @property
    def render_index(self) -> int:
        return self._render_index

    @property
    def show_index(self) -> int:
        return self._show_index

    @property
    def is_running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    # ── Render activity ──────────────────────────────────────────────

    def _is_stale(self, slide: SlideState, now: float) -> bool:
        if slide.last_render is None:
            return True
        return now - slide.last_render >= slide.config.refresh_seconds

    async def render_tick(self) -> bool:
        """One render-loop step. Returns True if a new image was stored."""
        if not self._transport.is_available():
            self._render_index = 0
            return False

        index = self._render_index
        slide = self._slides[index]
        rendered = False

        if self._is_stale(slide, self._clock()):
            log.debug("Rendering slide %d (%s)", index, slide.config.type)
            try:
                image = await self._producer.render_screen(index)
            except Exception:
                log.exception("Render of slide %d raised", index)
                image = None
            if image:
                slide.image = image
                slide.last_render = self._clock()
                rendered = True
                log.info("Rendered slide %d (%d bytes)", index, len(image))
            else:
                log.warning("Render of slide %d failed; keeping previous image", index)

        self._render_index = (index + 1) % len(self._slides)
        return rendered

    # ── Show activity ────────────────────────────────────────────────

    async def show_tick(self) -> float:
        """One show-loop step. Returns seconds until the next step."""
        if not self._transport.is_available():
            self._show_index = 0
            return UNAVAILABLE_BACKOFF_S

        index = self._show_index
        slide = self._slides[index]

        if slide.image is not None:
            if await self._transport.display(slide.image):
                slide.retries = self._default_retries
                log.debug("Showing slide %d for %.0fs", index, slide.config.show_seconds)
            else:
                log.warning("Display of slide %d failed", index)
            self._show_index = (index + 1) % len(self._slides)
            return slide.config.show_seconds

        slide.retries -= 1
        log.debug("Slide %d has no image yet (%d retries left)", index, slide.retries)
        if slide.retries <= 0:
            log.info("Skipping slide %d: no image after %d tries",
                     index, self._default_retries)
            slide.retries = self._default_retries
            self._show_index = (index + 1) % len(self._slides)
        return MISSING_IMAGE_RETRY_S

    # ── Loops ────────────────────────────────────────────────────────

    async def _render_loop(self) -> None:
        while True:
            await self.render_tick()
            await self._sleep(self._render_interval)

    async def _show_loop(self) -> None:
        while True:
            delay = await self.show_tick()
            await self._sleep(delay)

    def start(self) -> None:
        """Spawn both loops on the running event loop."""
        if self.is_running:
            return
        log.info("Starting slideshow with %d slide(s)", len(self._slides))
        self._tasks = [
            asyncio.create_task(self._render_loop(), name="slideshow-render"),
            asyncio.create_task(self._show_loop(), name="slideshow-show"),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        log.info("Slideshow stopped")

    async def run(self) -> None:
        """Run both loops until cancelled."""
        self.start()
        try:
            await asyncio.gather(*self._tasks)
        finally:
            await self.stop()
