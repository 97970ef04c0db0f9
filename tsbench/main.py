from __future__ import annotations

import argparse
import contextlib
import logging
import os
import queue
import random
import sys
import time
from pathlib import Path
from typing import Callable

from .charts import render_run_charts
from .client import ClientRunner
from .config import OUTPUT_FORMATS, SINKS, BenchmarkConfig, ConfigError
from .generator import BatchGenerator
from .models import RunResult, TotalResult
from .publisher import Publisher
from .report import print_results, save_runs_csv, save_totals_json
from .sinks import SinkConnectionError, WriteSink, open_sink, recreate_database
from .stats import aggregate

LOGGER = logging.getLogger("tsbench")

SinkFactory = Callable[[BenchmarkConfig, int], WriteSink]


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Concurrent write benchmark for a time-series store")
    parser.add_argument(
        "--server",
        default=os.environ.get("TSBENCH_SERVER", "http://localhost:8086"),
        help="InfluxDB server endpoint as scheme://host:port",
    )
    parser.add_argument(
        "--username",
        default=os.environ.get("TSBENCH_USERNAME", ""),
        help="InfluxDB username (empty if auth disabled)",
    )
    parser.add_argument(
        "--password",
        default=os.environ.get("TSBENCH_PASSWORD", ""),
        help="InfluxDB password (empty if auth disabled)",
    )
    parser.add_argument(
        "--database",
        default=os.environ.get("TSBENCH_DATABASE", "benchmarking"),
        help="InfluxDB database (will be created/cleaned if --clean)",
    )
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=_env_flag("TSBENCH_CLEAN", True),
        help="Whether to clean (create a new) DB before starting",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=os.environ.get("TSBENCH_COUNT", "100"),
        help="Number of messages to send per client",
    )
    parser.add_argument(
        "--batch",
        type=int,
        default=os.environ.get("TSBENCH_BATCH", "1"),
        help="Number of data points to submit at once (1 means no batching)",
    )
    parser.add_argument(
        "--clients",
        type=int,
        default=os.environ.get("TSBENCH_CLIENTS", "10"),
        help="Number of clients to start",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=os.environ.get("TSBENCH_FORMAT", "text"),
        help="Output format",
    )
    parser.add_argument(
        "--sink",
        choices=SINKS,
        default=os.environ.get("TSBENCH_SINK", "influx"),
        help="Where batches are written: InfluxDB over HTTP or a Kafka topic",
    )
    parser.add_argument(
        "--kafka-broker", default=os.environ.get("KAFKA_BROKER", "localhost:9092")
    )
    parser.add_argument(
        "--kafka-topic", default=os.environ.get("TSBENCH_KAFKA_TOPIC", "tsbench-points")
    )
    parser.add_argument(
        "--flush-remainder",
        action="store_true",
        help="Send the points left over after the last full batch as a short batch",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=os.environ.get("TSBENCH_SEED"),
        help="Seed for the synthetic data (client i uses seed + i)",
    )
    parser.add_argument(
        "--output-dir",
        default=os.environ.get("TSBENCH_OUTPUT_DIR"),
        help="Optional directory for CSV, JSON and chart artefacts",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("TSBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> BenchmarkConfig:
    return BenchmarkConfig(
        server=args.server,
        username=args.username,
        password=args.password,
        database=args.database,
        clean=args.clean,
        count=args.count,
        batch_size=args.batch,
        clients=args.clients,
        format=args.format,
        sink=args.sink,
        kafka_broker=args.kafka_broker,
        kafka_topic=args.kafka_topic,
        flush_remainder=args.flush_remainder,
        seed=args.seed,
        output_dir=args.output_dir,
    )


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_runner(config: BenchmarkConfig, client_id: int, sink: WriteSink) -> ClientRunner:
    generator = BatchGenerator(
        client_id=client_id,
        database=config.database,
        count=config.count,
        batch_size=config.batch_size,
        rng=random.Random(config.client_seed(client_id)),
        flush_remainder=config.flush_remainder,
    )
    return ClientRunner(client_id, generator, Publisher(client_id, sink))


def run_benchmark(
    config: BenchmarkConfig,
    sink_factory: SinkFactory | None = None,
) -> tuple[list[RunResult], TotalResult]:
    """Run every client to completion and return their results plus the totals.

    All sinks are opened before the first client starts, so a connection
    failure aborts the benchmark without any load having been sent.
    """
    sink_factory = sink_factory or open_sink
    sinks: list[WriteSink] = []
    try:
        for client_id in range(config.clients):
            sinks.append(sink_factory(config, client_id))
    except Exception:
        _close_sinks(sinks)
        raise

    runners = [build_runner(config, client_id, sink) for client_id, sink in enumerate(sinks)]
    results_queue: queue.Queue = queue.Queue()

    try:
        started = time.perf_counter()
        for runner in runners:
            LOGGER.info("Starting client %d", runner.client_id)
            runner.start(results_queue)

        results = [results_queue.get() for _ in runners]
        total_run_time = time.perf_counter() - started
    finally:
        _close_sinks(sinks)

    results.sort(key=lambda res: res.id)
    return results, aggregate(results, total_run_time)


def _close_sinks(sinks: list[WriteSink]) -> None:
    for sink in sinks:
        with contextlib.suppress(Exception):
            sink.close()


def write_artefacts(results: list[RunResult], totals: TotalResult, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    save_runs_csv(results, output_dir / "runs.csv")
    save_totals_json(totals, output_dir / "totals.json")
    render_run_charts(results, output_dir)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    config = config_from_args(args)
    try:
        config.validate()
    except ConfigError as exc:
        LOGGER.error("%s", exc)
        return 2

    try:
        if config.clean:
            if config.sink == "influx":
                recreate_database(config.server, config.username, config.password, config.database)
            else:
                LOGGER.warning("Cleaning is only supported by the influx sink; skipping")
        results, totals = run_benchmark(config)
    except SinkConnectionError as exc:
        target = config.kafka_broker if config.sink == "kafka" else config.server
        LOGGER.error("Error connecting to server %s: %s", target, exc)
        return 1

    print_results(results, totals, config.format)

    if config.output_dir:
        write_artefacts(results, totals, Path(config.output_dir))
    return 0


if __name__ == "__main__":
    sys.exit(main())
