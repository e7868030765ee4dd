"""photoframe services — slideshow scheduling and slide production.

No USB access here; the slideshow only sees the transport's
``is_available()`` / ``display()`` pair.
"""

from .data import DataProvider
from .image import ImageGenerator
from .mqtt import MqttSubscriber
from .slideshow import SlideShow

__all__ = [
    'DataProvider',
    'ImageGenerator',
    'MqttSubscriber',
    'SlideShow',
]
