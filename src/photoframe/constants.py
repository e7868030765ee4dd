"""Shared constants for photoframe-linux.

USB IDs and the vendor frame protocol are fixed by the frame's firmware
(Samsung SPF series, 800x600 panel).
"""

# =========================================================================
# USB identification
# =========================================================================

VENDOR_ID = 0x04E8
PID_STORAGE = 0x200C   # mass-storage mode (power-on default)
PID_CUSTOM = 0x200D    # custom (display) mode, after the mode switch

# Endpoint direction / request type / recipient bits (bmRequestType)
USB_ENDPOINT_OUT = 0x00 << 7
USB_ENDPOINT_IN = 0x01 << 7
USB_REQUEST_TYPE_STANDARD = 0x00 << 5
USB_REQUEST_TYPE_CLASS = 0x01 << 5
USB_REQUEST_TYPE_VENDOR = 0x02 << 5
USB_RECIPIENT_DEVICE = 0x00
USB_RECIPIENT_INTERFACE = 0x01

# =========================================================================
# Mode switch (storage → custom)
# =========================================================================
# GET_DESCRIPTOR-numbered request sent OUT with a zeroed 254-byte buffer.
# The firmware drops off the bus and re-enumerates as PID_CUSTOM.

MODE_SWITCH_REQUEST_TYPE = (
    USB_ENDPOINT_OUT | USB_REQUEST_TYPE_STANDARD | USB_RECIPIENT_DEVICE
)
MODE_SWITCH_REQUEST = 0x06
MODE_SWITCH_VALUE = 0xFE
MODE_SWITCH_INDEX = 0xFE
MODE_SWITCH_DATA_SIZE = 254

# =========================================================================
# Display frames
# =========================================================================

# Bytes 4-7 are overwritten with the JPEG length (uint32 LE)
FRAME_HEADER_TEMPLATE = bytes([
    0xA5, 0x5A, 0x18, 0x04,
    0x00, 0x00, 0x00, 0x00,
    0x48, 0x00, 0x00, 0x00,
])
FRAME_HEADER_SIZE = len(FRAME_HEADER_TEMPLATE)
FRAME_LENGTH_OFFSET = 4
FRAME_BLOCK_SIZE = 16384

# Transfer target
USB_INTERFACE = 0
EP_BULK_OUT = 0x02

# Timeouts (ms)
CONTROL_TIMEOUT_MS = 1000
BULK_TIMEOUT_MS = 5000

# Panel
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
JPEG_QUALITY = 90

# =========================================================================
# Slideshow timing (seconds)
# =========================================================================

RENDER_TICK_S = 1.0          # between render-loop ticks
UNAVAILABLE_BACKOFF_S = 5.0  # show loop idle while no device
MISSING_IMAGE_RETRY_S = 1.0  # show loop wait while slide has no image
DEFAULT_SHOW_RETRIES = 3     # missing-image ticks before skipping a slide

DEFAULT_REFRESH_S = 600
DEFAULT_SHOW_S = 10

# Hotplug polling
HOTPLUG_POLL_S = 1.0

# Data provider placeholders
DATA_UNKNOWN = "?"
DATA_MISSING_FIELD = "!"
