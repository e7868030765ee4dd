"""
Raw USB transport for the picture frame.

The frame powers up as a USB mass-storage device (04E8:200C).  A single
vendor control request switches it into custom mode, after which it drops
off the bus and re-enumerates as 04E8:200D and accepts JPEG frames on bulk
endpoint 2 of interface 0.

Protocol:
  1. Mode switch: control OUT, type standard, recipient device,
     bRequest=0x06, wValue=0xFE, wIndex=0xFE, 254 zero bytes.
  2. Frame send: claim interface 0, bulk write header + JPEG + padding
     (see frame_encoder), release interface 0.

All libusb calls block, so they run in a worker thread via
``asyncio.to_thread`` and complete back into the event loop.  Device state
(handle, mode) is only mutated on the loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

import usb.core
import usb.util

from .constants import (
    BULK_TIMEOUT_MS,
    CONTROL_TIMEOUT_MS,
    EP_BULK_OUT,
    FRAME_HEADER_SIZE,
    MODE_SWITCH_DATA_SIZE,
    MODE_SWITCH_INDEX,
    MODE_SWITCH_REQUEST,
    MODE_SWITCH_REQUEST_TYPE,
    MODE_SWITCH_VALUE,
    PID_CUSTOM,
    PID_STORAGE,
    USB_INTERFACE,
    VENDOR_ID,
)
from .core.models import DeviceMode, DiagnosticEvent
from .frame_encoder import encode_frame, hex_dump
from .hotplug import HotplugMonitor, PollingHotplugMonitor

log = logging.getLogger(__name__)


class FrameTransport:
    """Sole owner of the frame's USB handle.

    Observer callbacks (all optional):
        on_error(event: DiagnosticEvent): every logged failure
        on_state_changed(key: str, value): mode transitions
        on_send_complete(success: bool): after each display() transfer
    """

    def __init__(
        self,
        hotplug: Optional[HotplugMonitor] = None,
        vid: int = VENDOR_ID,
        pid_storage: int = PID_STORAGE,
        pid_custom: int = PID_CUSTOM,
    ):
        self.vid = vid
        self.pid_storage = pid_storage
        self.pid_custom = pid_custom
        self._hotplug = hotplug if hotplug is not None else PollingHotplugMonitor()
        self._dev = None
        self._dev_pid = 0
        self._mode = DeviceMode.NONE
        self._io_lock = asyncio.Lock()
        self._hotplug_registered = False
        self.product_name: str = ""

        self.on_error: Optional[Callable[[DiagnosticEvent], None]] = None
        self.on_state_changed: Optional[Callable[[str, object], None]] = None
        self.on_send_complete: Optional[Callable[[bool], None]] = None

    # ── State ────────────────────────────────────────────────────────

    @property
    def mode(self) -> DeviceMode:
        return self._mode

    @property
    def watched_pairs(self) -> List[Tuple[int, int]]:
        return [(self.vid, self.pid_custom), (self.vid, self.pid_storage)]

    def is_available(self) -> bool:
        """True iff the frame is in custom mode with an open handle."""
        return self._mode is DeviceMode.CUSTOM and self._dev is not None

    def _set_mode(self, mode: DeviceMode) -> None:
        if mode is self._mode:
            return
        log.info("Device mode: %s -> %s", self._mode.value, mode.value)
        self._mode = mode
        if self.on_state_changed:
            self.on_state_changed("mode", mode)

    def _report(self, kind: str, message: str, level: str = "error") -> None:
        """Log a failure and hand it to the diagnostic observer."""
        log.log(logging.WARNING if level == "warning" else logging.ERROR, message)
        if self.on_error:
            self.on_error(DiagnosticEvent(source="transport", kind=kind,
                                          message=message, level=level))

    # ── Discovery ────────────────────────────────────────────────────

    def _find(self, pid: int):
        return usb.core.find(idVendor=self.vid, idProduct=pid)  # type: ignore[union-attr]

    def _handle_present(self) -> bool:
        """Whether the device behind the open handle is still enumerated."""
        dev = self._dev
        if dev is None:
            return False
        for found in usb.core.find(find_all=True, idVendor=self.vid,  # type: ignore[union-attr]
                                   idProduct=self._dev_pid):
            if found.bus == dev.bus and found.address == dev.address:
                return True
        return False

    async def check_devices(self) -> DeviceMode:
        """Scan for the frame and bring it into custom mode.

        Custom-mode device first; otherwise open the storage-mode device
        and switch it.  Calling this while a handle is open and the device
        is still attached is a no-op.  Never raises.
        """
        async with self._io_lock:
            try:
                if self._dev is not None:
                    if await asyncio.to_thread(self._handle_present):
                        log.info("Device already open (%s mode)", self._mode.value)
                        return self._mode
                    log.info("Open device %04x:%04x is gone",
                             self.vid, self._dev_pid)
                    self._release()

                dev = await asyncio.to_thread(self._find, self.pid_custom)
                if dev is not None:
                    log.debug("Found custom-mode device %04x:%04x",
                              self.vid, self.pid_custom)
                    if await self._open(dev, self.pid_custom, claim_driver=True):
                        self._set_mode(DeviceMode.CUSTOM)
                    return self._mode

                dev = await asyncio.to_thread(self._find, self.pid_storage)
                if dev is not None:
                    log.debug("Found storage-mode device, switching to custom mode...")
                    if await self._open(dev, self.pid_storage, claim_driver=False):
                        self._set_mode(DeviceMode.STORAGE)
                        if await self._switch_to_custom(dev):
                            self._set_mode(DeviceMode.CUSTOM)
                        else:
                            self._release()
                    return self._mode

                log.warning("No picture frame found (%04x:%04x / %04x:%04x)",
                            self.vid, self.pid_custom, self.vid, self.pid_storage)
                self._release()
                return self._mode
            except Exception as e:
                self._report("discovery", f"Device scan failed: {e}")
                self._release()
                return self._mode

    async def _open(self, dev, pid: int, claim_driver: bool) -> bool:
        """Open *dev* and keep it as the handle. Returns False on failure."""
        try:
            product = await asyncio.to_thread(self._open_blocking, dev, claim_driver)
        except Exception as e:
            self._report("open", f"Error opening device {self.vid:04x}:"
                                 f"{pid:04x}: {e}")
            self._dispose(dev)
            self._set_mode(DeviceMode.NONE)
            return False
        self._dev = dev
        self._dev_pid = pid
        self.product_name = product
        log.info("Opened %s (%04x:%04x)", self.product_name or "picture frame",
                 self.vid, pid)
        return True

    def _open_blocking(self, dev, claim_driver: bool) -> str:
        """Configure *dev* in a worker thread and return its product string."""
        if claim_driver:
            # usb-storage may still hold the interface after re-enumeration
            try:
                if dev.is_kernel_driver_active(USB_INTERFACE):
                    dev.detach_kernel_driver(USB_INTERFACE)
                    log.debug("Detached kernel driver from interface %d", USB_INTERFACE)
            except (usb.core.USBError, NotImplementedError) as e:
                log.debug("Kernel driver detach: %s", e)
            dev.set_configuration()
        try:
            return usb.util.get_string(dev, dev.iProduct) or ""
        except (usb.core.USBError, ValueError) as e:
            log.debug("Product string unavailable: %s", e)
            return ""

    async def _switch_to_custom(self, dev) -> bool:
        """Issue the storage → custom mode-switch control transfer."""
        try:
            await asyncio.to_thread(
                dev.ctrl_transfer,
                MODE_SWITCH_REQUEST_TYPE,
                MODE_SWITCH_REQUEST,
                MODE_SWITCH_VALUE,
                MODE_SWITCH_INDEX,
                bytes(MODE_SWITCH_DATA_SIZE),
                CONTROL_TIMEOUT_MS,
            )
        except Exception as e:
            self._report("mode_switch", f"Error switching to custom mode: {e}")
            return False
        log.info("Mode switch sent to %04x:%04x", self.vid, self.pid_storage)
        return True

    # ── Hotplug ──────────────────────────────────────────────────────

    def register_hotplug_callbacks(self) -> None:
        """Rescan on attach/detach of either frame identity."""
        if self._hotplug_registered:
            return
        self._hotplug.register(self.watched_pairs, self._on_hotplug, self._on_hotplug)
        self._hotplug_registered = True

    async def _on_hotplug(self, pair: Tuple[int, int]) -> None:
        log.debug("Hotplug event for %04x:%04x, rescanning", *pair)
        await self.check_devices()

    async def start(self) -> DeviceMode:
        """Initial scan, then start hotplug tracking."""
        self.register_hotplug_callbacks()
        mode = await self.check_devices()
        await self._hotplug.start()
        return mode

    async def stop(self) -> None:
        await self._hotplug.stop()
        self.close()

    # ── Display ──────────────────────────────────────────────────────

    async def display(self, image_bytes: bytes) -> bool:
        """Send one JPEG to the frame. Returns True if the transfer completed.

        USB errors are logged and reported as False, never raised.
        """
        if not self.is_available():
            self._report("display", "Display skipped: device not available",
                         level="warning")
            return False

        try:
            frame = encode_frame(image_bytes)
        except (TypeError, ValueError) as e:
            self._report("encode", f"Cannot encode frame: {e}")
            return False

        log.debug("Sending %d bytes. Header = '%s'. Image size = %d",
                  len(frame), hex_dump(frame[:FRAME_HEADER_SIZE]), len(image_bytes))

        async with self._io_lock:
            dev = self._dev
            if dev is None:
                ok = False
            else:
                try:
                    await asyncio.to_thread(self._bulk_write, dev, frame)
                    ok = True
                except Exception as e:
                    self._report("transfer", f"Bulk transfer failed ({len(frame)} bytes): {e}")
                    ok = False

        if self.on_send_complete:
            self.on_send_complete(ok)
        return ok

    def _bulk_write(self, dev, frame: bytes) -> None:
        """Claim, write, release.  Release runs on every exit path."""
        try:
            usb.util.claim_interface(dev, USB_INTERFACE)
            written = dev.write(EP_BULK_OUT, frame, BULK_TIMEOUT_MS)
            if written != len(frame):
                raise RuntimeError(f"short write: {written}/{len(frame)} bytes")
        finally:
            try:
                usb.util.release_interface(dev, USB_INTERFACE)
            except Exception as e:
                log.debug("Release interface: %s", e)

    # ── Teardown ─────────────────────────────────────────────────────

    def _dispose(self, dev) -> None:
        try:
            usb.util.dispose_resources(dev)
        except Exception as e:
            log.debug("dispose_resources: %s", e)

    def _release(self) -> None:
        """Drop the handle (if any) and fall back to NONE."""
        if self._dev is not None:
            self._dispose(self._dev)
            self._dev = None
            self._dev_pid = 0
            self.product_name = ""
        self._set_mode(DeviceMode.NONE)

    def close(self) -> None:
        """Release USB device."""
        if self._dev is not None:
            log.info("Closing device")
        self._release()

    def __repr__(self) -> str:
        return (f"FrameTransport({self.vid:04x}:{self.pid_custom:04x}, "
                f"mode={self._mode.value})")
