"""Tests for conf.py – config file persistence and parsing."""

import json
import os
import tempfile
import unittest

from photoframe.conf import load_config, load_frame_config, parse_config, save_config


class ConfTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = os.path.join(self._tmp.name, 'sub', 'config.json')

    def write(self, text):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, 'w') as f:
            f.write(text)


class TestLoadSave(ConfTestCase):

    def test_missing_file(self):
        self.assertEqual(load_config(self.path), {})

    def test_corrupt_file(self):
        self.write("{not json")
        self.assertEqual(load_config(self.path), {})

    def test_non_object(self):
        self.write("[1, 2]")
        self.assertEqual(load_config(self.path), {})

    def test_round_trip_creates_directory(self):
        save_config({"width": 1024}, self.path)
        self.assertEqual(load_config(self.path), {"width": 1024})


class TestParseConfig(unittest.TestCase):

    def test_empty(self):
        config = parse_config({})
        self.assertEqual(config.size, (800, 600))
        self.assertEqual(config.slides, [])

    def test_full(self):
        config = parse_config({
            "width": 1024, "height": 768,
            "screen": [
                {"type": "image", "location": "/a.jpg", "showSeconds": 20},
                {"type": "html", "url": "http://x/"},
            ],
            "data": [{"name": "temp", "url": "mqtt://broker/home/temp"}],
        })
        self.assertEqual(config.size, (1024, 768))
        self.assertEqual([s.type for s in config.slides], ["image", "html"])
        self.assertEqual(config.slides[0].show_seconds, 20)
        self.assertEqual(config.data_sources[0].topic, "home/temp")
        self.assertEqual(config.data_sources[0].type, "mqtt")

    def test_invalid_entries_skipped(self):
        with self.assertLogs('photoframe.conf', level='ERROR'):
            config = parse_config({
                "screen": [{"type": "video"}, "junk", {"location": "/b.jpg"}],
                "data": [{"name": "no-url"}, {"name": "ok", "url": "mqtt://b/t"}],
            })
        self.assertEqual(len(config.slides), 1)
        self.assertEqual([d.name for d in config.data_sources], ["ok"])


class TestLoadFrameConfig(ConfTestCase):

    def test_from_file(self):
        self.write(json.dumps({"screen": [{"location": "/a.jpg"}]}))
        config = load_frame_config(self.path)
        self.assertEqual(len(config.slides), 1)

    def test_missing_file_gives_defaults(self):
        config = load_frame_config(self.path)
        self.assertEqual(config.slides, [])


if __name__ == '__main__':
    unittest.main()
