"""Tests for core/models.py – SlideConfig, SlideState, DataSource, FrameConfig."""

import unittest
from dataclasses import FrozenInstanceError

from photoframe.core.models import (
    DataSource,
    DeviceMode,
    DiagnosticEvent,
    FrameConfig,
    SlideConfig,
    SlideState,
)

# =============================================================================
# SlideConfig
# =============================================================================


class TestSlideConfigFromDict(unittest.TestCase):
    """SlideConfig.from_dict() with config-file keys."""

    def test_camel_case_keys(self):
        slide = SlideConfig.from_dict({
            "type": "html", "url": "http://x/", "refreshSeconds": 60,
            "showSeconds": 5, "domElement": "#main",
        })
        self.assertEqual(slide.type, "html")
        self.assertEqual(slide.refresh_seconds, 60.0)
        self.assertEqual(slide.show_seconds, 5.0)
        self.assertEqual(slide.dom_element, "#main")

    def test_defaults(self):
        slide = SlideConfig.from_dict({"location": "/a.jpg"})
        self.assertEqual(slide.type, "image")
        self.assertEqual(slide.refresh_seconds, 600)
        self.assertEqual(slide.show_seconds, 10)
        self.assertIsNone(slide.url)

    def test_unknown_type(self):
        with self.assertRaises(ValueError):
            SlideConfig.from_dict({"type": "video"})

    def test_unknown_keys_ignored(self):
        slide = SlideConfig.from_dict({"location": "/a.jpg", "comment": "x"})
        self.assertEqual(slide.location, "/a.jpg")

    def test_frozen(self):
        slide = SlideConfig()
        with self.assertRaises(FrozenInstanceError):
            slide.show_seconds = 1


# =============================================================================
# SlideState
# =============================================================================


class TestSlideState(unittest.TestCase):

    def test_defaults(self):
        state = SlideState(config=SlideConfig())
        self.assertIsNone(state.image)
        self.assertIsNone(state.last_render)
        self.assertEqual(state.retries, 3)
        self.assertFalse(state.has_image)

    def test_has_image(self):
        state = SlideState(config=SlideConfig(), image=b'\xff\xd8')
        self.assertTrue(state.has_image)


# =============================================================================
# DataSource / FrameConfig / misc
# =============================================================================


class TestDataSource(unittest.TestCase):

    def test_topic(self):
        src = DataSource(name="t", url="mqtt://broker:1883/home/temp")
        self.assertEqual(src.topic, "home/temp")

    def test_topic_without_path(self):
        self.assertEqual(DataSource(name="t", url="mqtt://broker").topic, "")


class TestFrameConfig(unittest.TestCase):

    def test_defaults(self):
        config = FrameConfig()
        self.assertEqual(config.size, (800, 600))
        self.assertEqual(config.slides, [])
        self.assertEqual(config.data_sources, [])


class TestDeviceMode(unittest.TestCase):

    def test_values(self):
        self.assertEqual(DeviceMode.NONE.value, "none")
        self.assertEqual(DeviceMode.STORAGE.value, "storage")
        self.assertEqual(DeviceMode.CUSTOM.value, "custom")


class TestDiagnosticEvent(unittest.TestCase):

    def test_defaults(self):
        event = DiagnosticEvent(source="transport", kind="open", message="denied")
        self.assertEqual(event.level, "error")
        self.assertGreater(event.timestamp, 0)


if __name__ == '__main__':
    unittest.main()
