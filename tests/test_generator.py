import queue
import random
import threading

import pytest

from tsbench.generator import BatchGenerator
from tsbench.messages import Batch, DataPoint, Message, Signal


def make_generator(client_id=0, count=10, batch_size=5, seed=7, **kwargs):
    return BatchGenerator(
        client_id=client_id,
        database="bench",
        count=count,
        batch_size=batch_size,
        rng=random.Random(seed),
        clock=lambda: 1_700_000_000_000_000_000,
        **kwargs,
    )


class TestBatchGenerator:
    def test_exact_multiple(self):
        batches = list(make_generator(count=10, batch_size=5).batches())
        assert len(batches) == 2
        assert all(len(batch) == 5 for batch in batches)

    def test_remainder_is_discarded(self):
        generator = make_generator(count=10, batch_size=3)
        batches = list(generator.batches())
        assert len(batches) == 3
        assert all(len(batch) == 3 for batch in batches)
        assert generator.expected_batches == 3

    def test_remainder_flushed_when_enabled(self):
        generator = make_generator(count=10, batch_size=3, flush_remainder=True)
        batches = list(generator.batches())
        assert [len(batch) for batch in batches] == [3, 3, 3, 1]
        assert generator.expected_batches == 4

    def test_single_batch_of_everything(self):
        batches = list(make_generator(count=4, batch_size=4).batches())
        assert len(batches) == 1

    def test_points_carry_client_identity(self):
        generator = make_generator(client_id=3, count=50, batch_size=50)
        (batch,) = generator.batches()
        assert batch.database == "bench"
        for point in batch.points:
            assert point.measurement == "influxdb-benchmark-3"
            assert 0 <= int(point.tags["client_tag"]) <= 3
            assert 0.0 <= point.fields["value"] < 1.0
            assert point.timestamp_ns == 1_700_000_000_000_000_000

    def test_client_zero_tag_is_always_zero(self):
        (batch,) = make_generator(client_id=0, count=20, batch_size=20).batches()
        assert {point.tags["client_tag"] for point in batch.points} == {"0"}

    def test_same_seed_is_reproducible(self):
        first = [b.to_line_protocol() for b in make_generator(seed=11).batches()]
        second = [b.to_line_protocol() for b in make_generator(seed=11).batches()]
        assert first == second

    def test_rejects_zero_batch_size(self):
        with pytest.raises(ValueError):
            make_generator(batch_size=0)

    def test_run_emits_batches_then_completion_marker(self):
        handoff = queue.Queue()
        produced = make_generator(count=9, batch_size=2).run(handoff)
        items = [handoff.get_nowait() for _ in range(handoff.qsize())]
        assert produced == 4
        assert all(isinstance(item, Message) for item in items[:-1])
        assert items[-1] is Signal.GENERATION_DONE
        assert len(items) == 5

    def test_single_slot_handoff_blocks_the_generator(self):
        handoff = queue.Queue(maxsize=1)
        generator = make_generator(count=6, batch_size=2)
        thread = threading.Thread(target=generator.run, args=(handoff,), daemon=True)
        thread.start()

        first = handoff.get(timeout=5)
        assert isinstance(first, Message)
        # at most one further batch may be waiting while nobody consumes
        thread.join(timeout=0.2)
        assert thread.is_alive()
        assert handoff.qsize() <= 1

        rest = []
        while True:
            item = handoff.get(timeout=5)
            if item is Signal.GENERATION_DONE:
                break
            rest.append(item)
        thread.join(timeout=5)
        assert not thread.is_alive()
        assert len(rest) == 2


class TestLineProtocol:
    def test_point_line(self):
        point = DataPoint(
            measurement="influxdb-benchmark-1",
            tags={"client_tag": "1"},
            fields={"value": 0.5},
            timestamp_ns=123,
        )
        assert point.to_line() == "influxdb-benchmark-1,client_tag=1 value=0.5 123"

    def test_field_types(self):
        point = DataPoint("m", {}, {"i": 3, "b": True, "s": 'say "hi"', "f": 1.25}, 9)
        assert point.to_line() == 'm i=3i,b=true,s="say \\"hi\\"",f=1.25 9'

    def test_escaping(self):
        point = DataPoint("cpu load", {"host name": "a,b=c"}, {"value": 1.0}, 1)
        assert point.to_line() == "cpu\\ load,host\\ name=a\\,b\\=c value=1.0 1"

    def test_point_without_fields_is_rejected(self):
        with pytest.raises(ValueError):
            DataPoint("m", {}, {}, 1).to_line()

    def test_batch_joins_lines(self):
        batch = Batch(database="db")
        batch.add(DataPoint("m", {}, {"value": 1.0}, 1))
        batch.add(DataPoint("m", {}, {"value": 2.0}, 2))
        assert batch.to_line_protocol() == "m value=1.0 1\nm value=2.0 2"


class TestMessage:
    def test_latency_only_for_successful_messages(self):
        message = Message(batch=Batch(database="db"), sent=1.0, delivered=1.25, succeeded=True)
        assert message.latency_ms == pytest.approx(250.0)
        message.succeeded = False
        assert message.latency_ms is None

    def test_latency_without_delivery(self):
        assert Message(batch=Batch(database="db"), sent=1.0).latency_ms is None
