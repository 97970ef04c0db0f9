from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

OUTPUT_FORMATS: tuple[str, ...] = ("text", "json")
SINKS: tuple[str, ...] = ("influx", "kafka")


class ConfigError(ValueError):
    """Raised when the benchmark configuration is rejected before any client starts."""


@dataclass(frozen=True)
class BenchmarkConfig:
    """Everything one benchmark invocation needs to know."""

    server: str = "http://localhost:8086"
    username: str = ""
    password: str = ""
    database: str = "benchmarking"
    clean: bool = True
    count: int = 100
    batch_size: int = 1
    clients: int = 10
    format: str = "text"
    sink: str = "influx"
    kafka_broker: str = "localhost:9092"
    kafka_topic: str = "tsbench-points"
    flush_remainder: bool = False
    seed: int | None = None
    output_dir: str | None = None

    def validate(self) -> None:
        if self.clients < 1:
            raise ConfigError("Number of clients should be >= 1")
        parsed = urlparse(self.server)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigError(f"Invalid server URL: {self.server!r}")
        if self.batch_size < 1 or self.batch_size > self.count:
            raise ConfigError("Batch size should be >= 1 and <= count")
        if not self.database:
            raise ConfigError("Database should be provided")
        if self.format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"Unknown output format {self.format!r}; expected one of {', '.join(OUTPUT_FORMATS)}"
            )
        if self.sink not in SINKS:
            raise ConfigError(f"Unknown sink {self.sink!r}; expected one of {', '.join(SINKS)}")
        if self.sink == "kafka" and not self.kafka_topic:
            raise ConfigError("Kafka topic should be provided")

    def client_seed(self, client_id: int) -> int | None:
        if self.seed is None:
            return None
        return self.seed + client_id
