"""Shared fixtures: in-memory write sinks for driving the client pipeline."""

import threading

import pytest

from tsbench.sinks import SinkWriteError


class RecordingSink:
    """Accepts every batch and keeps it."""

    def __init__(self):
        self.batches = []
        self.closed = False
        self._lock = threading.Lock()

    def write(self, batch):
        with self._lock:
            self.batches.append(batch)

    def close(self):
        self.closed = True


class FailingSink(RecordingSink):
    """Rejects every batch."""

    def write(self, batch):
        with self._lock:
            self.batches.append(batch)
        raise SinkWriteError("write rejected")


class FlakySink(RecordingSink):
    """Rejects every n-th batch, starting with the n-th."""

    def __init__(self, every):
        super().__init__()
        self.every = every

    def write(self, batch):
        with self._lock:
            self.batches.append(batch)
            attempt = len(self.batches)
        if attempt % self.every == 0:
            raise SinkWriteError(f"attempt {attempt} rejected")


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    return FailingSink()


@pytest.fixture
def flaky_sink():
    return FlakySink(every=2)
