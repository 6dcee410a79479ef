from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Sequence

import matplotlib.pyplot as plt
import numpy as np

logger = logging.getLogger(__name__)


def plot_compatibility_matrix(
    *,
    matrix: Sequence[Sequence[int]],
    names1: List[str],
    names2: List[str],
    out_png: str | Path,
    title: str = "Tree pair compatibility",
    max_labels: int = 40,
) -> None:
    """Heatmap of pair verdicts; rows are set-1 trees, columns set-2 trees."""
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    mat = np.asarray(matrix, dtype=float)
    if mat.size == 0:
        mat = np.zeros((1, 1))

    plt.figure()
    plt.imshow(mat, cmap="Greens", vmin=0.0, vmax=1.0, aspect="auto", interpolation="nearest")
    plt.xlabel("Set 2 tree")
    plt.ylabel("Set 1 tree")
    # Tick labels get unreadable on large sets; fall back to indices.
    if 0 < len(names2) <= max_labels:
        plt.xticks(range(len(names2)), names2, rotation=45, ha="right")
    if 0 < len(names1) <= max_labels:
        plt.yticks(range(len(names1)), names1)
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_remainder_sizes(
    *,
    remainder_hist: Dict[int, int],
    out_png: str | Path,
    title: str = "Unexplained events per placed node",
    max_bin: int = 20,
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    # Collapse tail into max_bin+
    xs = list(range(0, max_bin + 1))
    ys = [0] * len(xs)
    tail = 0
    for k, v in remainder_hist.items():
        k = int(k)
        if k <= max_bin:
            ys[k] += int(v)
        else:
            tail += int(v)

    xticklabels = [str(x) for x in range(0, max_bin + 1)]
    if tail > 0:
        xs.append(max_bin + 1)
        ys.append(tail)
        xticklabels.append(f"{max_bin + 1}+")

    plt.figure()
    plt.bar(range(len(xs)), ys)
    plt.xlabel("Remainder size (events)")
    plt.ylabel("Node count")
    plt.title(title)
    plt.xticks(range(len(xs)), xticklabels, rotation=0)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
