"""
Photoframe Models - Pure data classes with no USB or imaging dependencies.

Config dataclasses accept the camelCase keys of the JSON config file
(``refreshSeconds``, ``showSeconds``, ``domElement``).
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..constants import (
    DEFAULT_HEIGHT,
    DEFAULT_REFRESH_S,
    DEFAULT_SHOW_RETRIES,
    DEFAULT_SHOW_S,
    DEFAULT_WIDTH,
)

# =============================================================================
# Device state
# =============================================================================


class DeviceMode(Enum):
    """Operating mode of the attached frame."""
    NONE = "none"          # no device, or open failed
    STORAGE = "storage"    # enumerated as mass storage (PID 0x200C)
    CUSTOM = "custom"      # accepts display frames (PID 0x200D)


@dataclass
class DiagnosticEvent:
    """Structured record of a logged failure or state change.

    Emitted to observer callbacks alongside the log line so callers can
    react to failures without parsing log text.
    """
    source: str
    kind: str
    message: str
    level: str = "error"
    timestamp: float = field(default_factory=time.time)


# =============================================================================
# Slides
# =============================================================================

SLIDE_TYPES = ("image", "html")


@dataclass(frozen=True)
class SlideConfig:
    """One configured image source. Immutable after startup."""
    type: str = "image"
    refresh_seconds: float = DEFAULT_REFRESH_S
    show_seconds: float = DEFAULT_SHOW_S
    url: Optional[str] = None
    location: Optional[str] = None
    dom_element: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SlideConfig':
        """Build from a config-file entry, ignoring unknown keys."""
        slide_type = data.get("type", "image")
        if slide_type not in SLIDE_TYPES:
            raise ValueError(f"Unknown slide type: {slide_type!r}")
        return cls(
            type=slide_type,
            refresh_seconds=float(data.get("refreshSeconds", DEFAULT_REFRESH_S)),
            show_seconds=float(data.get("showSeconds", DEFAULT_SHOW_S)),
            url=data.get("url"),
            location=data.get("location"),
            dom_element=data.get("domElement"),
        )


@dataclass
class SlideState:
    """A slide plus its cached render and scheduling state.

    ``image`` is only ever replaced as a whole reference, never mutated.
    """
    config: SlideConfig
    image: Optional[bytes] = None
    last_render: Optional[float] = None
    retries: int = DEFAULT_SHOW_RETRIES

    @property
    def has_image(self) -> bool:
        return self.image is not None


# =============================================================================
# Application config
# =============================================================================


@dataclass
class DataSource:
    """Named live-data feed (MQTT topic URL, e.g. mqtt://broker/sensors/temp)."""
    name: str
    url: str
    type: str = "mqtt"

    @property
    def topic(self) -> str:
        """Topic part of the URL (path without leading slash)."""
        _, _, rest = self.url.partition("://")
        _, _, path = rest.partition("/")
        return path


@dataclass
class FrameConfig:
    """Everything loaded from config.json."""
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    slides: List[SlideConfig] = field(default_factory=list)
    data_sources: List[DataSource] = field(default_factory=list)

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)
