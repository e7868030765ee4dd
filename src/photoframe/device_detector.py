"""
USB Picture Frame Detector
Lists attached picture frames in either of their two USB identities.

Supported devices:
- Storage mode: VID=0x04E8, PID=0x200C  (power-on default, mass storage)
- Custom mode:  VID=0x04E8, PID=0x200D  (display mode, after mode switch)
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import usb.core
import usb.util

from .constants import PID_CUSTOM, PID_STORAGE, VENDOR_ID
from .core.models import DeviceMode

log = logging.getLogger(__name__)


@dataclass
class DeviceEntry:
    """Registry entry describing a known USB identity."""
    vendor: str
    product: str
    mode: DeviceMode


@dataclass
class DetectedDevice:
    """Attached frame found on the bus"""
    vid: int
    pid: int
    vendor_name: str
    product_name: str
    usb_path: str  # e.g., "2-5" (bus-address)
    mode: DeviceMode = DeviceMode.NONE
    serial: Optional[str] = None


KNOWN_DEVICES: dict[tuple[int, int], DeviceEntry] = {
    (VENDOR_ID, PID_STORAGE): DeviceEntry(
        vendor="Samsung", product="Photo Frame (Mass Storage)",
        mode=DeviceMode.STORAGE,
    ),
    (VENDOR_ID, PID_CUSTOM): DeviceEntry(
        vendor="Samsung", product="Photo Frame (Custom)",
        mode=DeviceMode.CUSTOM,
    ),
}


def _read_serial(dev) -> Optional[str]:
    """Serial string descriptor, or None if the device won't give one."""
    try:
        if dev.iSerialNumber:
            return usb.util.get_string(dev, dev.iSerialNumber)
    except (usb.core.USBError, ValueError, NotImplementedError):
        pass
    return None


def detect_devices() -> List[DetectedDevice]:
    """Enumerate all attached frames (both modes)."""
    log.debug("Scanning USB bus for picture frames...")
    devices = []
    for (vid, pid), entry in KNOWN_DEVICES.items():
        for dev in usb.core.find(find_all=True, idVendor=vid, idProduct=pid):
            log.debug("Found known device: %04X:%04X %s", vid, pid, entry.product)
            devices.append(DetectedDevice(
                vid=vid,
                pid=pid,
                vendor_name=entry.vendor,
                product_name=entry.product,
                usb_path=f"{dev.bus}-{dev.address}",
                mode=entry.mode,
                serial=_read_serial(dev),
            ))

    log.info("Detected %d device(s): %s", len(devices),
             ", ".join(f"{d.product_name} [{d.usb_path}]" for d in devices) or "none")
    return devices


def print_device_info(device: DetectedDevice):
    """Pretty print device information"""
    print(f"Device: {device.vendor_name} {device.product_name}")
    print(f"  USB VID:PID: {device.vid:04X}:{device.pid:04X}")
    print(f"  USB Path: {device.usb_path}")
    print(f"  Mode: {device.mode.value}")
    if device.serial:
        print(f"  Serial: {device.serial}")
