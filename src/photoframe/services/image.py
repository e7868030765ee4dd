"""Slide image producer — fetch, capture, letterbox, JPEG-encode.

Pure Python (PIL + selenium), no USB dependencies.

Slide types:
    image: ``url`` (file:, http:, https:) or ``location`` (local path)
    html:  ``url`` captured with headless Chromium at panel size, optionally
           cropped to the ``domElement`` CSS selector

Every source is fitted into the panel with black bars (aspect preserved,
bicubic) and encoded as JPEG quality 90, the format the frame decodes.
"""
from __future__ import annotations

import asyncio
import io
import logging
import os
import re
import shutil
from datetime import datetime
from typing import Any
from urllib.parse import unquote, urlsplit
from urllib.request import Request, urlopen

from PIL import Image as PILImage
from PIL import ImageOps
from selenium import webdriver
from selenium.common.exceptions import NoSuchElementException, TimeoutException
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from ..constants import JPEG_QUALITY
from ..core.models import FrameConfig, SlideConfig
from .data import DataProvider

log = logging.getLogger(__name__)

# Cap decompression at 8000x8000. Remote slides are untrusted input.
PILImage.MAX_IMAGE_PIXELS = 8000 * 8000

_DATA_FIELD = re.compile(r'\{data:([^:{}]+)(?::([^{}]+))?\}')

# Tried in order when no browser binary is given; otherwise selenium finds Chrome
BROWSER_NAMES = ("chromium-browser", "chromium")
BROWSER_TIMEOUT_S = 60
ELEMENT_WAIT_S = 30
HTTP_TIMEOUT_S = 30


class ImageGenerator:
    """Renders configured slides into JPEG bytes for the frame."""

    def __init__(
        self,
        config: FrameConfig,
        data: DataProvider | None = None,
        browser: str | None = None,
    ) -> None:
        self._config = config
        self._data = data
        self._browser = browser

    # ── Templates ────────────────────────────────────────────────────

    def template(self, text: str, now: datetime | None = None) -> str:
        """Expand {HH} {H} {mm} {m} {cwd} and {data:name[:property]}."""
        now = now or datetime.now()
        text = (text
                .replace('{HH}', f"{now.hour:02d}")
                .replace('{H}', str(now.hour))
                .replace('{mm}', f"{now.minute:02d}")
                .replace('{m}', str(now.minute))
                .replace('{cwd}', os.getcwd()))
        if self._data is not None:
            data = self._data
            text = _DATA_FIELD.sub(lambda m: data.get(m.group(1), m.group(2)), text)
        return text

    # ── Sources ──────────────────────────────────────────────────────

    def load_file(self, path: str) -> Any:
        log.debug("load_file(): %s", path)
        with PILImage.open(path) as img:
            img.load()
            return img.copy()

    def load_url(self, url: str) -> Any | None:
        """Load an image from a file:, http: or https: URL."""
        parts = urlsplit(url)
        log.debug("load_url(): %s %s", parts.scheme, parts.path)
        if parts.scheme == 'file':
            return self.load_file(self.template(unquote(parts.path)))
        if parts.scheme in ('http', 'https'):
            req = Request(self.template(url), headers={'User-Agent': 'photoframe-linux'})
            with urlopen(req, timeout=HTTP_TIMEOUT_S) as response:
                payload = response.read()
            return PILImage.open(io.BytesIO(payload))
        log.error("load_url(): no handler for scheme '%s'", parts.scheme)
        return None

    def _chrome_options(self) -> ChromeOptions:
        options = ChromeOptions()
        options.add_argument('--headless')
        options.add_argument('--disable-gpu')
        options.add_argument('--disable-dev-shm-usage')
        options.add_argument('--hide-scrollbars')
        options.add_argument(f'--window-size={self._config.width},{self._config.height}')
        if os.geteuid() == 0:
            options.add_argument('--no-sandbox')
        binary = self._browser or next(
            (path for path in map(shutil.which, BROWSER_NAMES) if path), None)
        if binary:
            options.binary_location = binary
        return options

    def capture_html(self, url: str, dom_element: str | None = None) -> Any:
        """Screenshot *url* with headless Chromium at panel size.

        With *dom_element* (a CSS selector) only that element is captured.
        If the element never shows up the whole viewport is used instead.
        """
        expanded = self.template(url)
        log.debug("capture_html(): %s", expanded)

        driver = webdriver.Chrome(options=self._chrome_options())
        try:
            driver.set_page_load_timeout(BROWSER_TIMEOUT_S)
            driver.get(expanded)
            png = None
            if dom_element:
                try:
                    element = WebDriverWait(driver, ELEMENT_WAIT_S).until(
                        EC.presence_of_element_located((By.CSS_SELECTOR, dom_element)))
                    png = element.screenshot_as_png
                except (TimeoutException, NoSuchElementException):
                    log.warning("capture_html(): '%s' not found on %s, "
                                "capturing full page", dom_element, expanded)
            if png is None:
                png = driver.get_screenshot_as_png()
        finally:
            driver.quit()
        return PILImage.open(io.BytesIO(png))

    # ── Encoding ─────────────────────────────────────────────────────

    def fit(self, image: Any) -> Any:
        """Letterbox into the panel size."""
        if image.mode != 'RGB':
            image = image.convert('RGB')
        return ImageOps.pad(
            image, self._config.size,
            method=PILImage.Resampling.BICUBIC,
            color=(0, 0, 0),
        )

    @staticmethod
    def to_jpeg(image: Any, quality: int = JPEG_QUALITY) -> bytes:
        buf = io.BytesIO()
        image.save(buf, format='JPEG', quality=quality)
        return buf.getvalue()

    # ── Producer contract ────────────────────────────────────────────

    def _load(self, slide: SlideConfig) -> Any | None:
        if slide.type == 'image':
            if slide.url:
                return self.load_url(slide.url)
            if slide.location:
                return self.load_file(self.template(slide.location))
            log.error("render_screen(): image slide needs 'url' or 'location'")
            return None
        if slide.type == 'html':
            if slide.url:
                return self.capture_html(slide.url, slide.dom_element)
            log.error("render_screen(): 'url' is needed for html slides")
            return None
        log.error("render_screen(): unknown slide type '%s'", slide.type)
        return None

    def render_blocking(self, index: int) -> bytes | None:
        slide = self._config.slides[index % len(self._config.slides)]
        image = self._load(slide)
        if image is None:
            return None
        return self.to_jpeg(self.fit(image))

    async def render_screen(self, index: int) -> bytes | None:
        """Render slide *index* to JPEG bytes, or None on any failure."""
        if not self._config.slides:
            return None
        try:
            return await asyncio.to_thread(self.render_blocking, index)
        except Exception as e:
            log.error("render_screen(%d): %s", index, e)
            return None
