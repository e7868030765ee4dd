"""Tests for services.data — live-data cache and placeholders."""

import unittest

from photoframe.core.models import DataSource
from photoframe.services.data import DataProvider


class TestDataProvider(unittest.TestCase):

    def setUp(self):
        self.data = DataProvider([
            DataSource(name="outside", url="mqtt://broker/weather/outside"),
            DataSource(name="power", url="mqtt://broker/meter/power"),
        ])

    def test_topics(self):
        self.assertEqual(self.data.topics, ["meter/power", "weather/outside"])

    def test_unknown_name(self):
        self.assertEqual(self.data.get("nope"), "?")

    def test_nothing_received(self):
        self.assertEqual(self.data.get("outside"), "?")
        self.assertEqual(self.data.get("outside", "temp"), "?")

    def test_raw_value(self):
        self.data.on_message("meter/power", b"1234")
        self.assertEqual(self.data.get("power"), "1234")

    def test_json_property(self):
        self.data.on_message("weather/outside", '{"temp": 21.5, "hum": 40}')
        self.assertEqual(self.data.get("outside", "temp"), "21.5")
        self.assertEqual(self.data.get("outside", "hum"), "40")

    def test_missing_property(self):
        self.data.on_message("weather/outside", '{"temp": 21.5}')
        self.assertEqual(self.data.get("outside", "wind"), "!")

    def test_null_property(self):
        self.data.on_message("weather/outside", '{"temp": null}')
        self.assertEqual(self.data.get("outside", "temp"), "!")

    def test_property_of_non_json(self):
        self.data.on_message("meter/power", b"1234 W")
        self.assertEqual(self.data.get("power", "value"), "?")

    def test_property_of_json_list(self):
        self.data.on_message("meter/power", b"[1, 2]")
        self.assertEqual(self.data.get("power", "value"), "?")

    def test_latest_message_wins(self):
        self.data.on_message("meter/power", b"1")
        self.data.on_message("meter/power", b"2")
        self.assertEqual(self.data.get("power"), "2")

    def test_register_later(self):
        self.data.register("door", "house/door")
        self.data.on_message("house/door", "open")
        self.assertEqual(self.data.get("door"), "open")

    def test_invalid_utf8_replaced(self):
        self.data.on_message("meter/power", b"\xff42")
        self.assertTrue(self.data.get("power").endswith("42"))


if __name__ == '__main__':
    unittest.main()
