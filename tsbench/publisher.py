from __future__ import annotations

import logging
import queue
import time
from typing import Callable

from .messages import Message, Signal
from .sinks import SinkError, WriteSink

LOGGER = logging.getLogger("tsbench.publisher")

PROGRESS_INTERVAL_DEFAULT = 100


class Publisher:
    """Take batches off the handoff queue, write them and report each outcome."""

    def __init__(
        self,
        client_id: int,
        sink: WriteSink,
        progress_interval: int = PROGRESS_INTERVAL_DEFAULT,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._client_id = client_id
        self._sink = sink
        self._progress_interval = progress_interval
        self._clock = clock

    def publish(self, message: Message) -> Message:
        message.sent = self._clock()
        try:
            self._sink.write(message.batch)
        except SinkError as exc:
            LOGGER.error("client %d error submitting data: %s", self._client_id, exc)
            message.succeeded = False
        except Exception:  # noqa: BLE001
            LOGGER.exception("client %d unexpected error submitting data", self._client_id)
            message.succeeded = False
        else:
            message.delivered = self._clock()
            message.succeeded = True
        return message

    def run(self, handoff: queue.Queue, outcomes: queue.Queue) -> int:
        """Publish until the generator's completion marker arrives.

        The marker travels through ``handoff`` behind the last batch, so every
        batch has been reported on ``outcomes`` before PUBLISHING_DONE is put.
        """
        published = 0
        while True:
            item = handoff.get()
            if item is Signal.GENERATION_DONE:
                break
            outcomes.put(self.publish(item))
            published += 1
            if self._progress_interval > 0 and published % self._progress_interval == 0:
                LOGGER.info(
                    "client %d submitted %d messages and keeps going...",
                    self._client_id,
                    published,
                )

        outcomes.put(Signal.PUBLISHING_DONE)
        LOGGER.info("client %d is done submitting data", self._client_id)
        return published
