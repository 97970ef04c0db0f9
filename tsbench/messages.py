from __future__ import annotations

import enum
from dataclasses import dataclass, field


class Signal(enum.Enum):
    """One-shot completion markers passed along the client pipeline queues."""

    GENERATION_DONE = "generation-done"
    PUBLISHING_DONE = "publishing-done"


def _escape(value: str, specials: str) -> str:
    for char in specials:
        value = value.replace(char, "\\" + char)
    return value


def _format_field(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


@dataclass(frozen=True)
class DataPoint:
    measurement: str
    tags: dict[str, str]
    fields: dict[str, object]
    timestamp_ns: int

    def to_line(self) -> str:
        if not self.fields:
            raise ValueError("a data point needs at least one field")
        parts = [_escape(self.measurement, ", ")]
        for key in sorted(self.tags):
            parts.append(f"{_escape(key, ',= ')}={_escape(self.tags[key], ',= ')}")
        head = ",".join(parts)
        body = ",".join(
            f"{_escape(key, ',= ')}={_format_field(value)}"
            for key, value in self.fields.items()
        )
        return f"{head} {body} {self.timestamp_ns}"


@dataclass
class Batch:
    database: str
    points: list[DataPoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def add(self, point: DataPoint) -> None:
        self.points.append(point)

    def to_line_protocol(self) -> str:
        return "\n".join(point.to_line() for point in self.points)


@dataclass
class Message:
    """A batch in flight, carrying the timing and outcome of its write."""

    batch: Batch
    sent: float | None = None
    delivered: float | None = None
    succeeded: bool = False

    @property
    def latency_ms(self) -> float | None:
        if not self.succeeded or self.sent is None or self.delivered is None:
            return None
        return (self.delivered - self.sent) * 1000.0


__all__ = ["Signal", "DataPoint", "Batch", "Message"]
