"""Config loading for photoframe.

Config is stored at ~/.config/photoframe/config.json (XDG-compliant)::

    {
      "width": 800,
      "height": 600,
      "screen": [
        {"type": "image", "location": "/srv/photos/{HH}.jpg",
         "refreshSeconds": 3600, "showSeconds": 20},
        {"type": "html", "url": "http://dashboard.local/",
         "refreshSeconds": 600, "showSeconds": 10}
      ],
      "data": [
        {"name": "outside", "type": "mqtt", "url": "mqtt://broker/weather/outside"}
      ]
    }

Usage:
    from photoframe.conf import load_frame_config

    config = load_frame_config()          # default path
    config = load_frame_config(path)      # explicit file
"""
from __future__ import annotations

import json
import logging
import os
from typing import Optional

from .constants import DEFAULT_HEIGHT, DEFAULT_WIDTH
from .core.models import DataSource, FrameConfig, SlideConfig

log = logging.getLogger(__name__)

# =========================================================================
# Config file location (XDG-compliant)
# =========================================================================

_XDG_CONFIG = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
CONFIG_DIR = os.path.join(_XDG_CONFIG, 'photoframe')
CONFIG_PATH = os.path.join(CONFIG_DIR, 'config.json')


# =========================================================================
# Low-level config persistence
# =========================================================================

def load_config(path: Optional[str] = None) -> dict:
    """Load config from disk. Returns empty dict on missing/corrupt file."""
    path = path or CONFIG_PATH
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        log.warning("Config not found: %s", path)
        return {}
    except (json.JSONDecodeError, OSError) as e:
        log.error("Cannot read config %s: %s", path, e)
        return {}
    if not isinstance(config, dict):
        log.error("Config %s is not a JSON object", path)
        return {}
    return config


def save_config(config: dict, path: Optional[str] = None):
    """Save config to disk."""
    path = path or CONFIG_PATH
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w') as f:
        json.dump(config, f, indent=2)


# =========================================================================
# Typed config
# =========================================================================

def parse_config(raw: dict) -> FrameConfig:
    """Build a FrameConfig from a config dict.

    Invalid slide or data entries are logged and skipped.
    """
    slides = []
    for i, entry in enumerate(raw.get('screen', [])):
        try:
            slides.append(SlideConfig.from_dict(entry))
        except (TypeError, ValueError, AttributeError) as e:
            log.error("Skipping screen[%d]: %s", i, e)

    sources = []
    for i, entry in enumerate(raw.get('data', [])):
        try:
            sources.append(DataSource(
                name=entry['name'],
                url=entry['url'],
                type=entry.get('type', 'mqtt'),
            ))
        except (KeyError, TypeError, AttributeError) as e:
            log.error("Skipping data[%d]: %s", i, e)

    return FrameConfig(
        width=int(raw.get('width', DEFAULT_WIDTH)),
        height=int(raw.get('height', DEFAULT_HEIGHT)),
        slides=slides,
        data_sources=sources,
    )


def load_frame_config(path: Optional[str] = None) -> FrameConfig:
    """Load and parse the config file."""
    config = parse_config(load_config(path))
    log.info("Loaded %d slide(s), %d data source(s), panel %dx%d",
             len(config.slides), len(config.data_sources),
             config.width, config.height)
    return config
