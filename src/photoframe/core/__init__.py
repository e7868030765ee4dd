"""Core data models (no USB / imaging dependencies)."""

from .models import (
    DataSource,
    DeviceMode,
    DiagnosticEvent,
    FrameConfig,
    SlideConfig,
    SlideState,
)

__all__ = [
    'DataSource',
    'DeviceMode',
    'DiagnosticEvent',
    'FrameConfig',
    'SlideConfig',
    'SlideState',
]
