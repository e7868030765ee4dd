"""MQTT feed for the live-data cache.

One client per configured data source: connect to the broker named in the
source URL (``mqtt://[user:pass@]host[:port]/topic``), subscribe to the
topic and hand every message to ``DataProvider.on_message``.  A dropped or
refused connection is logged and retried; it never reaches the slideshow.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable
from urllib.parse import unquote, urlsplit

import aiomqtt

from ..core.models import DataSource
from .data import DataProvider

log = logging.getLogger(__name__)

MQTT_DEFAULT_PORT = 1883
MQTT_RECONNECT_S = 10.0


class MqttSubscriber:
    """Keeps a DataProvider fed from the configured MQTT sources."""

    def __init__(
        self,
        data: DataProvider,
        sources: Iterable[DataSource],
        client_factory: Callable[..., Any] = aiomqtt.Client,
        reconnect_delay: float = MQTT_RECONNECT_S,
    ) -> None:
        self._data = data
        self._sources = [s for s in sources if self._supported(s)]
        self._client_factory = client_factory
        self._reconnect_delay = reconnect_delay
        self._tasks: list[asyncio.Task] = []

    @staticmethod
    def _supported(source: DataSource) -> bool:
        if source.type != "mqtt":
            log.warning("Data source '%s': unsupported type '%s'", source.name, source.type)
            return False
        if not source.topic:
            log.warning("Data source '%s': no topic in %s", source.name, source.url)
            return False
        return True

    @property
    def is_running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def _client_args(self, source: DataSource) -> dict:
        parts = urlsplit(source.url)
        args: dict[str, Any] = {
            "hostname": parts.hostname or "localhost",
            "port": parts.port or MQTT_DEFAULT_PORT,
        }
        if parts.username:
            args["username"] = unquote(parts.username)
            args["password"] = unquote(parts.password) if parts.password else None
        return args

    async def _listen(self, source: DataSource) -> None:
        args = self._client_args(source)
        broker = f"{args['hostname']}:{args['port']}"
        while True:
            try:
                log.debug("MQTT: connecting to %s for '%s'", broker, source.name)
                async with self._client_factory(**args) as client:
                    await client.subscribe(source.topic)
                    log.info("MQTT: subscribed to %s on %s", source.topic, broker)
                    async for message in client.messages:
                        self._data.on_message(str(message.topic), message.payload)
                log.warning("MQTT: %s closed the connection", broker)
            except aiomqtt.MqttError as e:
                log.warning("MQTT: %s (%s): %s", broker, source.name, e)
            await asyncio.sleep(self._reconnect_delay)

    async def start(self) -> None:
        if self.is_running:
            return
        self._tasks = [
            asyncio.create_task(self._listen(s), name=f"mqtt-{s.name}")
            for s in self._sources
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
