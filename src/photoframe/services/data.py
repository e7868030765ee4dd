"""Live data cache for slide templates.

Holds the latest payload per topic and maps configured source names to
topics.  Whatever delivers messages (an MQTT client, a test) calls
``on_message``; templates read values back through ``get``.

Placeholders instead of errors:
    "?"  unknown name, nothing received yet, or payload is not JSON
    "!"  JSON payload received but the requested property is missing
"""
from __future__ import annotations

import json
import logging
from typing import Iterable

from ..constants import DATA_MISSING_FIELD, DATA_UNKNOWN
from ..core.models import DataSource

log = logging.getLogger(__name__)


class DataProvider:
    """Latest-value cache keyed by source name."""

    def __init__(self, sources: Iterable[DataSource] = ()) -> None:
        self._data: dict[str, str] = {}
        self._topics: dict[str, str] = {}
        for source in sources:
            self.register(source.name, source.topic)

    def register(self, name: str, topic: str) -> None:
        self._topics[name] = topic
        log.debug("DataProvider: %s -> %s", name, topic)

    @property
    def topics(self) -> list[str]:
        return sorted(set(self._topics.values()))

    def on_message(self, topic: str, payload: bytes | str) -> None:
        if isinstance(payload, (bytes, bytearray)):
            payload = bytes(payload).decode('utf-8', errors='replace')
        elif not isinstance(payload, str):
            payload = "" if payload is None else str(payload)
        log.debug("DataProvider.on_message(): %s, %s", topic, payload)
        self._data[topic] = payload

    def get(self, name: str, prop: str | None = None) -> str:
        """Latest value for *name*, optionally one field of a JSON payload."""
        topic = self._topics.get(name)
        raw = self._data.get(topic) if topic is not None else None
        if raw is None:
            res = DATA_UNKNOWN
        elif prop is None:
            res = raw
        else:
            try:
                doc = json.loads(raw)
            except ValueError:
                doc = None
            if isinstance(doc, dict):
                value = doc.get(prop)
                res = DATA_MISSING_FIELD if value is None else str(value)
            else:
                res = DATA_UNKNOWN
        log.debug("DataProvider.get(): %s, %s", name, res)
        return res
