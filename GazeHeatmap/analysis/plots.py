from __future__ import annotations

from typing import Dict, Sequence, Tuple

import numpy as np  # type: ignore
import matplotlib
matplotlib.use("Agg")  # headless-safe backend; canvases will set interactive backend
import matplotlib.pyplot as plt  # type: ignore

from GazeHeatmap.capture.models import TrackingPoint


def fig_accuracy_scatter(samples: Sequence[Tuple[float, float]], viewport: Tuple[int, int], score: int):
    """Fixation samples around the viewport centre with the scoring radius (h/2)."""
    fig, ax = plt.subplots(figsize=(6, 4))
    ax.set_title(f"Accuracy check: {score}%")
    w, h = viewport
    cx, cy = w / 2.0, h / 2.0
    pts = np.asarray(samples, dtype=float).reshape(-1, 2)
    if len(pts) > 0:
        ax.scatter(pts[:, 0], pts[:, 1], c="red", s=12, alpha=0.7, label="Gaze samples")
    ax.scatter([cx], [cy], c="green", marker="+", s=120, label="Centre")
    ax.add_patch(plt.Circle((cx, cy), h / 2.0, fill=False, color="gray", linestyle="--"))
    ax.set_xlim(0, w)
    ax.set_ylim(0, h)
    ax.set_aspect("equal")
    ax.invert_yaxis()  # screen coordinates origin top-left
    ax.set_xlabel("X (px)")
    ax.set_ylabel("Y (px)")
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    return fig


def fig_page_density(
    gaze: Sequence[TrackingPoint],
    mouse: Sequence[TrackingPoint],
    page: str,
    bins: int = 40,
):
    """2D histograms of absolute (document) positions for one page."""
    fig, axes = plt.subplots(1, 2, figsize=(10, 4), sharey=True)
    for ax, pts, cmap, title in ((axes[0], gaze, "hot", "Gaze"), (axes[1], mouse, "Blues", "Pointer")):
        ax.set_title(f"{title} on {page} ({len(pts)})")
        if pts:
            xs = np.array([p.absolute_x for p in pts], dtype=float)
            ys = np.array([p.absolute_y for p in pts], dtype=float)
            ax.hist2d(xs, ys, bins=bins, cmap=cmap)
        ax.set_xlabel("X (px)")
        ax.invert_yaxis()
    axes[0].set_ylabel("Y (px)")
    fig.tight_layout()
    return fig


def fig_page_counts(counts: Dict[str, Tuple[int, int]]):
    fig, ax = plt.subplots(figsize=(6, 4))
    ax.set_title("Points per page")
    pages = list(counts)
    x = np.arange(len(pages))
    ax.bar(x - 0.2, [counts[p][0] for p in pages], width=0.4, color="orangered", label="Gaze")
    ax.bar(x + 0.2, [counts[p][1] for p in pages], width=0.4, color="steelblue", label="Pointer")
    ax.set_xticks(x)
    ax.set_xticklabels(pages, rotation=30, ha="right")
    ax.set_ylabel("Count")
    ax.legend(loc="best")
    fig.tight_layout()
    return fig
