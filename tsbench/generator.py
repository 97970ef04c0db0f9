from __future__ import annotations

import logging
import queue
import random
import time
from typing import Callable, Iterator

from .messages import Batch, DataPoint, Message, Signal

LOGGER = logging.getLogger("tsbench.generator")

MEASUREMENT_PREFIX = "influxdb-benchmark"


class BatchGenerator:
    """Produce the synthetic point batches of one client.

    ``count`` points are generated and grouped into batches of exactly
    ``batch_size`` points. A trailing ``count % batch_size`` points are dropped
    unless ``flush_remainder`` is set, in which case they go out as a short
    final batch.
    """

    def __init__(
        self,
        client_id: int,
        database: str,
        count: int,
        batch_size: int,
        rng: random.Random | None = None,
        flush_remainder: bool = False,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if count < 0:
            raise ValueError("count must be >= 0")
        self._client_id = client_id
        self._database = database
        self._count = count
        self._batch_size = batch_size
        self._rng = rng or random.Random()
        self._flush_remainder = flush_remainder
        self._clock = clock

    @property
    def measurement(self) -> str:
        return f"{MEASUREMENT_PREFIX}-{self._client_id}"

    @property
    def expected_batches(self) -> int:
        full, remainder = divmod(self._count, self._batch_size)
        if self._flush_remainder and remainder:
            return full + 1
        return full

    def batches(self) -> Iterator[Batch]:
        batch = Batch(database=self._database)
        for _ in range(self._count):
            batch.add(self._make_point())
            if len(batch) == self._batch_size:
                yield batch
                batch = Batch(database=self._database)
        if self._flush_remainder and len(batch):
            yield batch

    def run(self, handoff: queue.Queue) -> int:
        """Feed every batch into ``handoff``, then the completion marker.

        ``handoff`` is expected to hold a single item, so each ``put`` waits
        for the publisher to take the previous batch.
        """
        produced = 0
        try:
            for batch in self.batches():
                handoff.put(Message(batch=batch))
                produced += 1
        finally:
            handoff.put(Signal.GENERATION_DONE)
        LOGGER.debug("client %d is done generating %d batches", self._client_id, produced)
        return produced

    def _make_point(self) -> DataPoint:
        return DataPoint(
            measurement=self.measurement,
            tags={"client_tag": str(self._rng.randint(0, self._client_id))},
            fields={"value": self._rng.random()},
            timestamp_ns=self._clock(),
        )
