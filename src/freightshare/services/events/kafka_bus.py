"""Kafka producer wrapper for match notifications."""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Callable, Sequence

from kafka import KafkaProducer
from kafka.errors import KafkaError

from ...errors import PublishFailed

logger = logging.getLogger(__name__)

RECONNECT_BACKOFF_SECONDS = 30.0


def _serialize(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode("utf-8")


class KafkaEventBus:
    """Publishes JSON messages through a ``KafkaProducer``.

    The producer bootstraps against the brokers in its constructor, so it is
    created on the first publish rather than when the bus is built. After a
    failed bootstrap, publishes fail fast until the backoff has elapsed.
    """

    def __init__(
        self,
        producer: KafkaProducer | None = None,
        *,
        producer_factory: Callable[[], KafkaProducer] | None = None,
        reconnect_backoff_seconds: float = RECONNECT_BACKOFF_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if producer is None and producer_factory is None:
            raise ValueError("KafkaEventBus needs a producer or a producer factory.")
        self.producer = producer
        self._producer_factory = producer_factory
        self._reconnect_backoff = reconnect_backoff_seconds
        self._clock = clock
        self._retry_after: float | None = None
        self._lock = threading.Lock()

    @classmethod
    def connect(cls, brokers: Sequence[str], client_id: str) -> "KafkaEventBus":
        def factory() -> KafkaProducer:
            return KafkaProducer(
                bootstrap_servers=list(brokers),
                client_id=client_id,
                value_serializer=_serialize,
                retries=2,
                request_timeout_ms=3000,
                api_version_auto_timeout_ms=3000,
            )

        return cls(producer_factory=factory)

    def _get_producer(self) -> KafkaProducer:
        with self._lock:
            if self.producer is not None:
                return self.producer
            now = self._clock()
            if self._retry_after is not None and now < self._retry_after:
                raise PublishFailed("Kafka producer unavailable; waiting before reconnecting.")
            try:
                self.producer = self._producer_factory()
            except KafkaError as exc:
                self._retry_after = now + self._reconnect_backoff
                raise PublishFailed(f"Kafka producer could not connect: {exc}") from exc
            self._retry_after = None
            logger.info("Kafka producer connected")
            return self.producer

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        producer = self._get_producer()
        # send() is asynchronous; delivery failures after enqueue are only logged.
        try:
            future = producer.send(topic, value=payload)
        except KafkaError as exc:
            raise PublishFailed(f"Kafka rejected message for '{topic}': {exc}") from exc
        future.add_errback(lambda exc: logger.warning(f"Kafka delivery to '{topic}' failed: {exc}"))

    def close(self, timeout: float = 5.0) -> None:
        """Flush buffered messages and release the producer, if one was created."""
        with self._lock:
            producer, self.producer = self.producer, None
        if producer is None:
            return
        try:
            producer.flush(timeout=timeout)
            producer.close(timeout=timeout)
        except KafkaError as exc:
            logger.warning(f"Kafka producer did not shut down cleanly: {exc}")
