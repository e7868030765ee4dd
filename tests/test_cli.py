"""
Tests for cli – command-line entry points.

Tests cover:
- main() dispatch, help and --version
- setup-udev rule generation (dry run, non-root)
- init-config file creation and overwrite protection
- send / detect / run error paths
"""

import asyncio
import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest.mock import AsyncMock, patch

from photoframe import cli
from photoframe.cli import init_config, main, run_slideshow, send_image, setup_udev


class TestMainEntryPoint(unittest.TestCase):
    """Test main() CLI dispatch."""

    def test_no_args_prints_help(self):
        buf = io.StringIO()
        with redirect_stdout(buf):
            result = main([])
        self.assertEqual(result, 0)
        self.assertIn('setup-udev', buf.getvalue())

    def test_version_flag(self):
        with redirect_stdout(io.StringIO()), self.assertRaises(SystemExit) as cm:
            main(['--version'])
        self.assertEqual(cm.exception.code, 0)

    def test_detect_dispatches(self):
        with patch.object(cli, 'detect', return_value=0) as mock_detect:
            self.assertEqual(main(['detect']), 0)
        mock_detect.assert_called_once_with()

    def test_run_dispatches(self):
        with patch.object(cli, 'run_slideshow', return_value=0) as mock_run:
            main(['-v', 'run', '-c', '/tmp/x.json'])
        mock_run.assert_called_once_with(config_path='/tmp/x.json')

    def test_send_dispatches(self):
        with patch.object(cli, 'send_image', return_value=0) as mock_send:
            main(['send', 'a.jpg'])
        mock_send.assert_called_once_with('a.jpg')


class TestSetupUdev(unittest.TestCase):

    def test_dry_run(self):
        buf = io.StringIO()
        with redirect_stdout(buf):
            result = setup_udev(dry_run=True)
        output = buf.getvalue()
        self.assertEqual(result, 0)
        self.assertIn('ATTRS{idVendor}=="04e8"', output)
        self.assertIn('ATTRS{idProduct}=="200c"', output)
        self.assertIn('ATTRS{idProduct}=="200d"', output)
        self.assertIn('MODE="0666"', output)

    @patch('photoframe.cli.os.geteuid', return_value=1000)
    def test_requires_root(self, _):
        with redirect_stdout(io.StringIO()):
            self.assertEqual(setup_udev(), 1)


class TestInitConfig(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = os.path.join(self._tmp.name, 'photoframe', 'config.json')

    def test_writes_example(self):
        with redirect_stdout(io.StringIO()):
            self.assertEqual(init_config(self.path), 0)
        with open(self.path) as f:
            data = json.load(f)
        self.assertEqual(len(data['screen']), 2)

    def test_refuses_overwrite(self):
        with redirect_stdout(io.StringIO()):
            init_config(self.path)
            self.assertEqual(init_config(self.path), 1)
            self.assertEqual(init_config(self.path, force=True), 0)


class TestCommands(unittest.TestCase):

    def test_send_missing_file(self):
        buf = io.StringIO()
        with redirect_stdout(buf):
            self.assertEqual(send_image('/nonexistent/photo.jpg'), 1)
        self.assertIn('File not found', buf.getvalue())

    @patch('photoframe.cli._send_once', new_callable=AsyncMock, return_value=False)
    def test_send_no_frame(self, mock_send):
        with tempfile.TemporaryDirectory() as tmp:
            from PIL import Image
            path = os.path.join(tmp, 'a.png')
            Image.new('RGB', (20, 20)).save(path)
            with redirect_stdout(io.StringIO()):
                self.assertEqual(send_image(path), 1)
        jpeg = mock_send.await_args[0][0]
        self.assertEqual(jpeg[:2], b'\xff\xd8')

    @patch('photoframe.device_detector.detect_devices', return_value=[])
    def test_detect_none(self, _):
        with redirect_stdout(io.StringIO()):
            self.assertEqual(cli.detect(), 1)

    @patch('photoframe.services.slideshow.SlideShow.run', new_callable=AsyncMock)
    @patch('photoframe.device_frame.FrameTransport.stop', new_callable=AsyncMock)
    @patch('photoframe.device_frame.FrameTransport.start', new_callable=AsyncMock)
    @patch('photoframe.services.mqtt.MqttSubscriber.stop', new_callable=AsyncMock)
    @patch('photoframe.services.mqtt.MqttSubscriber.start', new_callable=AsyncMock)
    def test_run_starts_and_stops_data_feed(self, feed_start, feed_stop,
                                            transport_start, transport_stop, show_run):
        from photoframe.conf import parse_config

        config = parse_config({
            "screen": [{"location": "/a.jpg"}],
            "data": [{"name": "outside", "url": "mqtt://broker/weather"}],
        })
        asyncio.run(cli._run_slideshow(config))

        feed_start.assert_awaited_once()
        feed_stop.assert_awaited_once()
        transport_start.assert_awaited_once()
        transport_stop.assert_awaited_once()
        show_run.assert_awaited_once()

    def test_run_without_slides(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'empty.json')
            with open(path, 'w') as f:
                json.dump({"screen": []}, f)
            buf = io.StringIO()
            with redirect_stdout(buf):
                self.assertEqual(run_slideshow(path), 1)
        self.assertIn('no slides', buf.getvalue())


if __name__ == '__main__':
    unittest.main()
