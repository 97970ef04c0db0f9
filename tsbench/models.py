from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RunResult:
    """Statistics for one client's completed run. Latencies are in milliseconds."""

    id: int
    successes: int
    failures: int
    run_time: float
    msg_time_min: float
    msg_time_max: float
    msg_time_mean: float
    msg_time_ps25: float
    msg_time_ps50: float
    msg_time_ps95: float
    msg_time_std: float
    msgs_per_sec: float

    @property
    def attempts(self) -> int:
        return self.successes + self.failures


@dataclass(frozen=True)
class TotalResult:
    """Benchmark-wide statistics combined from every client's RunResult.

    The ``msg_time_mean_*`` figures are statistics over the per-client mean
    latencies, one value per client, not over the pooled raw samples.
    """

    ratio: float
    successes: int
    failures: int
    total_run_time: float
    avg_run_time: float
    msg_time_min: float
    msg_time_max: float
    msg_time_mean_avg: float
    msg_time_mean_std: float
    msg_time_mean_ps25: float
    msg_time_mean_ps50: float
    msg_time_mean_ps95: float
    total_msgs_per_sec: float
    avg_msgs_per_sec: float
    ps25_msgs_per_sec: float
    ps50_msgs_per_sec: float
    ps95_msgs_per_sec: float

    @property
    def attempts(self) -> int:
        return self.successes + self.failures
