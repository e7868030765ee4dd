"""
photoframe-linux - USB picture frame slideshow

Drives USB picture frames that boot as mass storage (04E8:200C) and
accept JPEG frames after a mode switch (04E8:200D).

Features:
- Storage → custom mode switch on discovery
- Hotplug recovery without restart
- Slideshow of local/remote images and web page captures
- Independent refresh and show cadence per slide

Usage:
    # As a library
    from photoframe import FrameTransport, encode_frame
    transport = FrameTransport()
    await transport.check_devices()
    await transport.display(jpeg_bytes)

    # Command line
    photoframe run        # Run the slideshow
    photoframe detect     # List attached frames
    photoframe send a.jpg # Show one image
"""

from .__version__ import __version__
from .core.models import DeviceMode, SlideConfig, SlideState
from .device_frame import FrameTransport
from .frame_encoder import encode_frame
from .services.slideshow import SlideShow

__all__ = [
    "__version__",
    "DeviceMode",
    "FrameTransport",
    "SlideConfig",
    "SlideShow",
    "SlideState",
    "encode_frame",
]
