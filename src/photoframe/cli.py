#!/usr/bin/env python3
"""
photoframe-linux - Command Line Interface

Entry points for the photoframe-linux package.
"""

import argparse
import asyncio
import logging
import os
import subprocess
import sys

from .__version__ import __version__

UDEV_RULES_PATH = "/etc/udev/rules.d/99-photoframe.rules"

# Seconds to wait for the frame to come back as 04E8:200D after a mode switch
SEND_ATTACH_WAIT_S = 10


def setup_logging(verbose=0):
    """Map -v count to a logging level (filter out noisy PIL)."""
    if verbose >= 2:
        logging.basicConfig(level=logging.DEBUG, format='[%(levelname)s] %(name)s: %(message)s')
        logging.getLogger('PIL').setLevel(logging.WARNING)
    elif verbose == 1:
        logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="photoframe",
        description="USB picture frame slideshow for Linux",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    photoframe run                  Run the slideshow from config.json
    photoframe run -c frame.json    Run with an explicit config file
    photoframe detect               List attached frames
    photoframe send photo.jpg       Show one image and exit
    photoframe init-config          Write an example config
    photoframe setup-udev           Install udev rules (root)
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v, -vv)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run the slideshow")
    run_parser.add_argument("--config", "-c", help="Config file (default: ~/.config/photoframe/config.json)")

    subparsers.add_parser("detect", help="List attached picture frames")

    send_parser = subparsers.add_parser("send", help="Send one image to the frame")
    send_parser.add_argument("image", help="Image file to send")

    init_parser = subparsers.add_parser("init-config", help="Write an example config file")
    init_parser.add_argument("--config", "-c", help="Target path")
    init_parser.add_argument("--force", "-f", action="store_true", help="Overwrite existing file")

    udev_parser = subparsers.add_parser("setup-udev", help="Install udev rules for frame access")
    udev_parser.add_argument("--dry-run", action="store_true", help="Print rules without installing")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(args.verbose)

    if args.command == "run":
        return run_slideshow(config_path=args.config)
    elif args.command == "detect":
        return detect()
    elif args.command == "send":
        return send_image(args.image)
    elif args.command == "init-config":
        return init_config(path=args.config, force=args.force)
    elif args.command == "setup-udev":
        return setup_udev(dry_run=args.dry_run)

    return 0


async def _run_slideshow(config):
    from .device_frame import FrameTransport
    from .services.data import DataProvider
    from .services.image import ImageGenerator
    from .services.mqtt import MqttSubscriber
    from .services.slideshow import SlideShow

    data = DataProvider(config.data_sources)
    feed = MqttSubscriber(data, config.data_sources)
    producer = ImageGenerator(config, data)
    transport = FrameTransport()
    show = SlideShow(transport, producer, config.slides)

    await feed.start()
    await transport.start()
    try:
        await show.run()
    finally:
        await transport.stop()
        await feed.stop()


def run_slideshow(config_path=None):
    """Run the slideshow until interrupted."""
    try:
        from .conf import load_frame_config

        config = load_frame_config(config_path)
        if not config.slides:
            print("Error: no slides configured. See 'photoframe init-config'.")
            return 1

        print(f"[photoframe] Cycling {len(config.slides)} slide(s) "
              f"at {config.width}x{config.height}...")
        asyncio.run(_run_slideshow(config))
        return 0
    except KeyboardInterrupt:
        print("\nSlideshow stopped.")
        return 0
    except Exception as e:
        print(f"Error running slideshow: {e}")
        return 1


def detect():
    """List attached frames."""
    try:
        from .device_detector import detect_devices, print_device_info

        devices = detect_devices()
        if not devices:
            print("No picture frame detected.")
            return 1

        for i, device in enumerate(devices, 1):
            print(f"[{i}] ", end="")
            print_device_info(device)
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1


async def _send_once(jpeg):
    from .core.models import DeviceMode
    from .device_frame import FrameTransport

    transport = FrameTransport()
    try:
        for _ in range(SEND_ATTACH_WAIT_S):
            mode = await transport.check_devices()
            if mode is DeviceMode.CUSTOM and transport.is_available():
                # A fresh mode switch leaves a handle to the vanished
                # storage device; display() on it fails, so rescan.
                if await transport.display(jpeg):
                    return True
                transport.close()
            await asyncio.sleep(1)
        return False
    finally:
        transport.close()


def send_image(image_path):
    """Send one image to the frame."""
    try:
        from .core.models import FrameConfig
        from .services.image import ImageGenerator

        if not os.path.exists(image_path):
            print(f"Error: File not found: {image_path}")
            return 1

        producer = ImageGenerator(FrameConfig())
        jpeg = producer.to_jpeg(producer.fit(producer.load_file(image_path)))

        if not asyncio.run(_send_once(jpeg)):
            print("Error: could not display image (is the frame attached?)")
            return 1
        print(f"Sent {image_path} ({len(jpeg)} bytes JPEG)")
        return 0
    except Exception as e:
        print(f"Error sending image: {e}")
        return 1


EXAMPLE_CONFIG = {
    "width": 800,
    "height": 600,
    "screen": [
        {"type": "image", "location": "{cwd}/photo.jpg",
         "refreshSeconds": 3600, "showSeconds": 20},
        {"type": "html", "url": "https://example.org/",
         "refreshSeconds": 600, "showSeconds": 10},
    ],
    "data": [],
}


def init_config(path=None, force=False):
    """Write an example config file."""
    try:
        from .conf import CONFIG_PATH, save_config

        path = path or CONFIG_PATH
        if os.path.exists(path) and not force:
            print(f"Config already exists: {path} (use --force to overwrite)")
            return 1
        save_config(EXAMPLE_CONFIG, path)
        print(f"Wrote {path}")
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1


def setup_udev(dry_run=False):
    """Generate and install udev rules from KNOWN_DEVICES.

    Both USB identities need rules: the storage one for the mode-switch
    control transfer, the custom one for bulk frame writes.
    """
    try:
        from .device_detector import KNOWN_DEVICES

        rules_lines = ["# USB picture frames, auto-generated by photoframe setup-udev"]
        for (vid, pid), info in sorted(KNOWN_DEVICES.items()):
            rules_lines.append(
                f'# {info.vendor} {info.product}\n'
                f'SUBSYSTEM=="usb", '
                f'ATTRS{{idVendor}}=="{vid:04x}", '
                f'ATTRS{{idProduct}}=="{pid:04x}", '
                f'MODE="0666"'
            )
        rules_content = "\n\n".join(rules_lines) + "\n"

        if dry_run:
            print(rules_content)
            print(f"# Would write to {UDEV_RULES_PATH}")
            return 0

        if os.geteuid() != 0:
            print("Error: root required. Run with:")
            print("  sudo photoframe setup-udev")
            print("\nOr preview first:")
            print("  photoframe setup-udev --dry-run")
            return 1

        with open(UDEV_RULES_PATH, "w") as f:
            f.write(rules_content)
        print(f"Wrote {UDEV_RULES_PATH}")

        subprocess.run(["udevadm", "control", "--reload-rules"], check=False)
        subprocess.run(["udevadm", "trigger"], check=False)
        print("\nDone. Replug the frame for changes to take effect.")
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
