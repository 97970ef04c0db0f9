from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Protocol

import requests
from kafka import KafkaProducer
from kafka.errors import KafkaError, NoBrokersAvailable

from .messages import Batch

if TYPE_CHECKING:
    from .config import BenchmarkConfig

LOGGER = logging.getLogger("tsbench.sinks")

HTTP_TIMEOUT_S = 30.0
KAFKA_ACK_TIMEOUT_S = 30.0
CONNECT_DEADLINE_S = 60.0


class SinkError(Exception):
    """Base class for write sink failures."""


class SinkConnectionError(SinkError):
    """Raised when a sink cannot be reached during setup."""


class SinkWriteError(SinkError):
    """Raised when a single batch write is rejected or fails in transit."""


class WriteSink(Protocol):
    def write(self, batch: Batch) -> None: ...

    def close(self) -> None: ...


class InfluxHTTPSink:
    """Write batches to an InfluxDB 1.x HTTP endpoint as line protocol."""

    def __init__(
        self,
        server: str,
        database: str,
        username: str = "",
        password: str = "",
        session: requests.Session | None = None,
        timeout_s: float = HTTP_TIMEOUT_S,
    ) -> None:
        self._server = server.rstrip("/")
        self._database = database
        self._session = session or requests.Session()
        if username:
            self._session.auth = (username, password)
        self._timeout_s = timeout_s

    def connect(self) -> None:
        try:
            response = self._session.get(f"{self._server}/ping", timeout=self._timeout_s)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise SinkConnectionError(f"unable to reach {self._server}: {exc}") from exc

    def write(self, batch: Batch) -> None:
        try:
            response = self._session.post(
                f"{self._server}/write",
                params={"db": batch.database or self._database, "precision": "ns"},
                data=batch.to_line_protocol().encode("utf-8"),
                timeout=self._timeout_s,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise SinkWriteError(str(exc)) from exc

    def close(self) -> None:
        self._session.close()


def create_producer(broker: str, deadline_s: float = CONNECT_DEADLINE_S) -> KafkaProducer:
    backoff = 1.0
    max_backoff = 10.0
    deadline = time.time() + deadline_s

    while True:
        try:
            return KafkaProducer(
                bootstrap_servers=broker,
                key_serializer=lambda v: v.encode("utf-8") if v else None,
                value_serializer=lambda v: v.encode("utf-8"),
            )
        except NoBrokersAvailable as exc:
            if time.time() >= deadline:
                raise SinkConnectionError(
                    f"failed to connect to Kafka broker within {deadline_s:.0f} seconds"
                ) from exc

            time.sleep(backoff)
            backoff = min(backoff * 1.5, max_backoff)


class KafkaSink:
    """Publish each batch as one line-protocol record on a Kafka topic."""

    def __init__(self, producer: KafkaProducer, topic: str) -> None:
        self._producer = producer
        self._topic = topic

    def write(self, batch: Batch) -> None:
        key = batch.points[0].measurement if batch.points else None
        try:
            future = self._producer.send(self._topic, key=key, value=batch.to_line_protocol())
            future.get(timeout=KAFKA_ACK_TIMEOUT_S)
        except KafkaError as exc:
            raise SinkWriteError(str(exc)) from exc

    def close(self) -> None:
        self._producer.flush()
        self._producer.close()


def recreate_database(server: str, username: str, password: str, database: str) -> None:
    """Drop then create ``database`` so the benchmark starts from an empty store."""
    LOGGER.info("Cleaning benchmarking data on server %s", server)
    auth = (username, password) if username else None
    url = f"{server.rstrip('/')}/query"
    quoted = database.replace("\\", "\\\\").replace('"', '\\"')
    for statement in (f'DROP DATABASE "{quoted}"', f'CREATE DATABASE "{quoted}"'):
        try:
            response = requests.post(
                url, params={"q": statement}, auth=auth, timeout=HTTP_TIMEOUT_S
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise SinkConnectionError(
                f"error running {statement!r} on {server}: {exc}"
            ) from exc


def open_sink(config: BenchmarkConfig, client_id: int) -> WriteSink:
    """Create and connect the write sink of one client."""
    LOGGER.debug("Opening %s sink for client %d", config.sink, client_id)
    if config.sink == "kafka":
        producer = create_producer(config.kafka_broker)
        return KafkaSink(producer, config.kafka_topic)

    sink = InfluxHTTPSink(
        server=config.server,
        database=config.database,
        username=config.username,
        password=config.password,
    )
    try:
        sink.connect()
    except SinkConnectionError:
        sink.close()
        raise
    return sink


__all__ = [
    "SinkError",
    "SinkConnectionError",
    "SinkWriteError",
    "WriteSink",
    "InfluxHTTPSink",
    "KafkaSink",
    "create_producer",
    "recreate_database",
    "open_sink",
]
