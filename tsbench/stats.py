from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .models import RunResult, TotalResult


def percentile(values: Sequence[float], ps: float) -> float:
    """Nearest-rank percentile with round-half-up rank selection.

    The rank is ``floor(n * ps / 100 + 0.5)``; a rank outside ``[1, n]``
    (including any empty input) yields 0.0. No interpolation is done.
    """
    ordered = sorted(values)
    index = int(math.floor(len(ordered) * ps / 100.0 + 0.5)) - 1
    if index < 0 or index >= len(ordered):
        return 0.0
    return float(ordered[index])


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def sample_std(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=1))


def success_ratio(successes: int, failures: int) -> float:
    attempts = successes + failures
    if attempts == 0:
        return 1.0
    return successes / attempts


def summarise_run(
    client_id: int,
    successes: int,
    failures: int,
    latencies_ms: Sequence[float],
    run_time: float,
) -> RunResult:
    """Build the immutable RunResult of one client from its latency samples.

    ``latencies_ms`` holds the round-trip time of every successful write, in
    the order they completed. Every statistic is 0.0 when it is empty.
    """
    samples = list(latencies_ms)
    return RunResult(
        id=client_id,
        successes=successes,
        failures=failures,
        run_time=run_time,
        msg_time_min=min(samples) if samples else 0.0,
        msg_time_max=max(samples) if samples else 0.0,
        msg_time_mean=mean(samples),
        msg_time_ps25=percentile(samples, 25.0),
        msg_time_ps50=percentile(samples, 50.0),
        msg_time_ps95=percentile(samples, 95.0),
        msg_time_std=sample_std(samples),
        msgs_per_sec=successes / run_time if run_time > 0 else 0.0,
    )


def aggregate(results: Sequence[RunResult], total_run_time: float) -> TotalResult:
    """Combine per-client results into the benchmark-wide TotalResult.

    Latency figures are statistics of the per-client means and throughput
    figures are statistics of the per-client rates; ``total_msgs_per_sec`` is
    the plain sum of those rates.
    """
    if not results:
        raise ValueError("cannot aggregate an empty set of run results")

    successes = sum(res.successes for res in results)
    failures = sum(res.failures for res in results)
    msg_time_means = [res.msg_time_mean for res in results]
    msgs_per_secs = [res.msgs_per_sec for res in results]
    run_times = [res.run_time for res in results]

    return TotalResult(
        ratio=success_ratio(successes, failures),
        successes=successes,
        failures=failures,
        total_run_time=total_run_time,
        avg_run_time=mean(run_times),
        msg_time_min=min(res.msg_time_min for res in results),
        msg_time_max=max(res.msg_time_max for res in results),
        msg_time_mean_avg=mean(msg_time_means),
        msg_time_mean_std=sample_std(msg_time_means),
        msg_time_mean_ps25=percentile(msg_time_means, 25.0),
        msg_time_mean_ps50=percentile(msg_time_means, 50.0),
        msg_time_mean_ps95=percentile(msg_time_means, 95.0),
        total_msgs_per_sec=sum(msgs_per_secs),
        avg_msgs_per_sec=mean(msgs_per_secs),
        ps25_msgs_per_sec=percentile(msgs_per_secs, 25.0),
        ps50_msgs_per_sec=percentile(msgs_per_secs, 50.0),
        ps95_msgs_per_sec=percentile(msgs_per_secs, 95.0),
    )


__all__ = [
    "percentile",
    "mean",
    "sample_std",
    "success_ratio",
    "summarise_run",
    "aggregate",
]
