from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Sequence, TextIO

import pandas as pd

from .models import RunResult, TotalResult
from .stats import success_ratio

LOGGER = logging.getLogger("tsbench.report")

RUN_COLUMNS = [field.name for field in dataclasses.fields(RunResult)]


def render_json(results: Sequence[RunResult], totals: TotalResult) -> str:
    document = {
        "runs": [dataclasses.asdict(res) for res in results],
        "totals": dataclasses.asdict(totals),
    }
    return json.dumps(document, indent="\t")


def render_text(results: Sequence[RunResult], totals: TotalResult) -> str:
    lines: list[str] = []
    for res in results:
        lines.extend(
            [
                f"======= CLIENT {res.id} =======",
                f"Ratio:                 {success_ratio(res.successes, res.failures):.3f} ({res.successes}/{res.attempts})",
                f"Runtime (s):           {res.run_time:.3f}",
                f"Msg time min (ms):     {res.msg_time_min:.3f}",
                f"Msg time max (ms):     {res.msg_time_max:.3f}",
                f"Msg time mean (ms):    {res.msg_time_mean:.3f}",
                f"Msg time std (ms):     {res.msg_time_std:.3f}",
                f"Msg time ps 25p (ms):  {res.msg_time_ps25:.3f}",
                f"Msg time ps 50p (ms):  {res.msg_time_ps50:.3f}",
                f"Msg time ps 95p (ms):  {res.msg_time_ps95:.3f}",
                f"Bandwidth (msg/sec):   {res.msgs_per_sec:.3f}",
                "",
            ]
        )
    lines.extend(
        [
            f"========= TOTAL ({len(results)}) =========",
            f"Total Ratio:                 {totals.ratio:.3f} ({totals.successes}/{totals.attempts})",
            f"Total Runtime (sec):         {totals.total_run_time:.3f}",
            f"Average Runtime (sec):       {totals.avg_run_time:.3f}",
            f"Msg time min (ms):           {totals.msg_time_min:.3f}",
            f"Msg time max (ms):           {totals.msg_time_max:.3f}",
            f"Msg time mean mean (ms):     {totals.msg_time_mean_avg:.3f}",
            f"Msg time mean std (ms):      {totals.msg_time_mean_std:.3f}",
            f"Msg time mean ps 25p (ms):   {totals.msg_time_mean_ps25:.3f}",
            f"Msg time mean ps 50p (ms):   {totals.msg_time_mean_ps50:.3f}",
            f"Msg time mean ps 95p (ms):   {totals.msg_time_mean_ps95:.3f}",
            f"Average Bandwidth (msg/sec): {totals.avg_msgs_per_sec:.3f}",
            f"Total Bandwidth (msg/sec):   {totals.total_msgs_per_sec:.3f}",
        ]
    )
    return "\n".join(lines)


def print_results(
    results: Sequence[RunResult],
    totals: TotalResult,
    output_format: str,
    stream: TextIO | None = None,
) -> None:
    if output_format == "json":
        rendered = render_json(results, totals)
    else:
        rendered = render_text(results, totals)
    print(rendered, file=stream)


def runs_dataframe(results: Sequence[RunResult]) -> pd.DataFrame:
    if not results:
        return pd.DataFrame(columns=RUN_COLUMNS)
    return pd.DataFrame([dataclasses.asdict(res) for res in results], columns=RUN_COLUMNS)


def save_runs_csv(results: Sequence[RunResult], path: Path) -> Path:
    df = runs_dataframe(results)
    df.to_csv(path, index=False)
    LOGGER.info("Saved %d client results to %s", len(df), path)
    return path


def save_totals_json(totals: TotalResult, path: Path) -> Path:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dataclasses.asdict(totals), f, indent=2)
    LOGGER.info("Totals written to %s", path)
    return path
