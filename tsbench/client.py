from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable

from .generator import BatchGenerator
from .messages import Signal
from .models import RunResult
from .publisher import Publisher
from .stats import summarise_run

LOGGER = logging.getLogger("tsbench.client")


class ClientRunner:
    """Drive one generator/publisher pair and turn their outcomes into a RunResult."""

    def __init__(
        self,
        client_id: int,
        generator: BatchGenerator,
        publisher: Publisher,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.client_id = client_id
        self._generator = generator
        self._publisher = publisher
        self._clock = clock

    def run(self, results: queue.Queue | None = None) -> RunResult:
        handoff: queue.Queue = queue.Queue(maxsize=1)
        outcomes: queue.Queue = queue.Queue(maxsize=1)

        started = self._clock()
        generator_thread = threading.Thread(
            target=self._generator.run,
            args=(handoff,),
            name=f"client-{self.client_id}-generator",
            daemon=True,
        )
        publisher_thread = threading.Thread(
            target=self._publisher.run,
            args=(handoff, outcomes),
            name=f"client-{self.client_id}-publisher",
            daemon=True,
        )
        generator_thread.start()
        publisher_thread.start()

        successes = 0
        failures = 0
        latencies_ms: list[float] = []
        while True:
            item = outcomes.get()
            if item is Signal.PUBLISHING_DONE:
                break
            if item.succeeded:
                successes += 1
                latencies_ms.append(item.latency_ms)
            else:
                failures += 1

        run_time = self._clock() - started
        generator_thread.join()
        publisher_thread.join()

        result = summarise_run(self.client_id, successes, failures, latencies_ms, run_time)
        LOGGER.debug(
            "client %d finished: %d ok, %d failed in %.3fs",
            self.client_id,
            successes,
            failures,
            run_time,
        )
        if results is not None:
            results.put(result)
        return result

    def start(self, results: queue.Queue) -> threading.Thread:
        """Run this client on its own thread, reporting into ``results``."""
        thread = threading.Thread(
            target=self.run,
            args=(results,),
            name=f"client-{self.client_id}",
            daemon=True,
        )
        thread.start()
        return thread
