"""photoframe-linux version information."""

__version__ = "0.4.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.1.0 - Initial release: mode switch, JPEG frame send, one-shot `send`
# 0.2.0 - Slideshow with independent render/show loops, html slides via
#         headless Chromium, {HH}/{mm} path templates
# 0.3.0 - Hotplug recovery (unplug/replug without restart), asyncio transport,
#         per-slide missing-image retries, {data:...} template fields
# 0.4.0 - MQTT data feed (aiomqtt), html element capture via selenium,
#         hotplug polling survives enumeration errors
