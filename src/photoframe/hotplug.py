"""
USB hotplug monitoring for the picture frame.

pyusb does not expose libusb's hotplug callbacks, so the default monitor
polls enumeration for the watched VID/PID pairs and reports the difference
between two scans as attach/detach events.  The scan only reads device
descriptors (no open, no claim), so polling once a second is cheap.

``HotplugMonitor`` is the contract the transport codes against; tests pass
their own implementation to ``FrameTransport(hotplug=...)``.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Iterable, List, Optional, Set, Tuple

import usb.core

from .constants import HOTPLUG_POLL_S

log = logging.getLogger(__name__)

VidPid = Tuple[int, int]
HotplugCallback = Callable[[VidPid], Awaitable[None]]


class HotplugMonitor(ABC):
    """Attach/detach notification source."""

    @abstractmethod
    def register(
        self,
        pairs: Iterable[VidPid],
        on_attach: HotplugCallback,
        on_detach: HotplugCallback,
    ) -> None:
        """Watch *pairs*; call the async callbacks with the (vid, pid) that changed."""

    @abstractmethod
    async def start(self) -> None:
        """Begin delivering events."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop delivering events."""


def scan_present(pairs: Iterable[VidPid]) -> Set[Tuple[int, int, int, int]]:
    """Return {(vid, pid, bus, address)} for every attached device in *pairs*."""
    present = set()
    for vid, pid in pairs:
        for dev in usb.core.find(find_all=True, idVendor=vid, idProduct=pid):
            present.add((vid, pid, dev.bus, dev.address))
    return present


class PollingHotplugMonitor(HotplugMonitor):
    """Hotplug events derived from periodic pyusb enumeration.

    Usage::

        monitor = PollingHotplugMonitor()
        monitor.register([(0x04E8, 0x200C)], on_attach, on_detach)
        await monitor.start()
        ...
        await monitor.stop()
    """

    def __init__(self, interval: float = HOTPLUG_POLL_S):
        self._interval = interval
        self._pairs: List[VidPid] = []
        self._subscribers: List[Tuple[HotplugCallback, HotplugCallback]] = []
        self._present: Set[Tuple[int, int, int, int]] = set()
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def register(self, pairs, on_attach, on_detach) -> None:
        for pair in pairs:
            if pair not in self._pairs:
                self._pairs.append(pair)
        self._subscribers.append((on_attach, on_detach))
        log.debug("Hotplug subscriber added for %s",
                  ", ".join(f"{v:04x}:{p:04x}" for v, p in self._pairs))

    async def start(self) -> None:
        if self.is_running:
            return
        self._present = await asyncio.to_thread(scan_present, list(self._pairs))
        log.info("Hotplug monitor started (%d watched device(s) present)",
                 len(self._present))
        self._task = asyncio.create_task(self._monitor_loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log.info("Hotplug monitor stopped")

    async def _monitor_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                current = await asyncio.to_thread(scan_present, list(self._pairs))
            except Exception as e:
                # pyusb raises ValueError (no backend) and OSError as well as USBError
                log.warning("Hotplug scan failed: %s", e)
                continue
            await self.poll_once(current)

    async def poll_once(self, current: Set[Tuple[int, int, int, int]]) -> None:
        """Diff *current* against the last scan and notify subscribers."""
        removed = self._present - current
        added = current - self._present
        self._present = current

        for vid, pid, bus, address in sorted(removed):
            log.info("USB detach: %04x:%04x (bus %d addr %d)", vid, pid, bus, address)
            await self._notify((vid, pid), attached=False)
        for vid, pid, bus, address in sorted(added):
            log.info("USB attach: %04x:%04x (bus %d addr %d)", vid, pid, bus, address)
            await self._notify((vid, pid), attached=True)

    async def _notify(self, pair: VidPid, attached: bool) -> None:
        # One failing subscriber must not starve the others
        for on_attach, on_detach in self._subscribers:
            callback = on_attach if attached else on_detach
            try:
                await callback(pair)
            except Exception:
                log.exception("Hotplug callback failed for %04x:%04x", *pair)
