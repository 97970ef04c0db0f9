from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .models import RunResult
from .report import runs_dataframe

LOGGER = logging.getLogger("tsbench.charts")

LATENCY_CHART_FILENAME = "latency_by_client.png"
THROUGHPUT_CHART_FILENAME = "throughput_by_client.png"

sns.set_style("whitegrid")
plt.rcParams["figure.dpi"] = 100
plt.rcParams["savefig.dpi"] = 150
plt.rcParams["font.size"] = 10
plt.rcParams["axes.labelsize"] = 11
plt.rcParams["axes.titlesize"] = 13

LATENCY_COLOR = "#2E86AB"
THROUGHPUT_COLOR = "#F18F01"


def render_run_charts(results: Sequence[RunResult], output_dir: Path) -> list[Path]:
    """Render per-client latency and throughput charts into ``output_dir``."""
    if not results:
        LOGGER.warning("No client results available for charts")
        return []

    df = runs_dataframe(results).sort_values("id")
    paths = [
        _render_latency_chart(df, output_dir / LATENCY_CHART_FILENAME),
        _render_throughput_chart(df, output_dir / THROUGHPUT_CHART_FILENAME),
    ]
    for path in paths:
        LOGGER.info("Rendering chart %s", path)
    return paths


def _render_latency_chart(df: pd.DataFrame, chart_path: Path) -> Path:
    """Mean write latency per client, whiskers spanning p25..p95."""
    fig, ax = plt.subplots(figsize=(max(8, len(df) * 0.6), 6))

    x = np.arange(len(df))
    means = df["msg_time_mean"].to_numpy(dtype=float)
    lower = np.clip(means - df["msg_time_ps25"].to_numpy(dtype=float), 0, None)
    upper = np.clip(df["msg_time_ps95"].to_numpy(dtype=float) - means, 0, None)

    ax.bar(
        x,
        means,
        color=LATENCY_COLOR,
        alpha=0.8,
        edgecolor="white",
        linewidth=1.5,
        yerr=[lower, upper],
        capsize=4,
    )
    ax.set_xticks(x)
    ax.set_xticklabels([str(client_id) for client_id in df["id"]])
    ax.set_xlabel("Client", fontweight="semibold")
    ax.set_ylabel("Write latency (ms)", fontweight="semibold")
    ax.set_title("Mean Write Latency per Client (p25-p95)", fontweight="bold", pad=15)
    ax.set_ylim(bottom=0)
    ax.grid(True, alpha=0.3, axis="y", linestyle="--")

    plt.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    return chart_path


def _render_throughput_chart(df: pd.DataFrame, chart_path: Path) -> Path:
    fig, ax = plt.subplots(figsize=(max(8, len(df) * 0.6), 6))

    labels = [str(client_id) for client_id in df["id"]]
    bars = ax.bar(
        labels,
        df["msgs_per_sec"].to_numpy(dtype=float),
        color=THROUGHPUT_COLOR,
        alpha=0.8,
        edgecolor="white",
        linewidth=1.5,
    )
    ax.set_xlabel("Client", fontweight="semibold")
    ax.set_ylabel("Throughput (msg/sec)", fontweight="semibold")
    ax.set_title("Write Throughput per Client", fontweight="bold", pad=15)
    ax.grid(True, alpha=0.3, axis="y", linestyle="--")

    for bar in bars:
        height = bar.get_height()
        ax.text(
            bar.get_x() + bar.get_width() / 2.0,
            height,
            f"{height:.1f}",
            ha="center",
            va="bottom",
            fontsize=8,
        )

    plt.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    return chart_path
