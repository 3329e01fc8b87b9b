# -*- coding: utf-8 -*-
"""
fem_smoother/visualization.py

平滑化結果の可視化:
- plot_profile: 値 (境界チューブ付き)・1階微分・2階微分の3段プロット
"""

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

if TYPE_CHECKING:
    from .fem_1d_qp_problem import Fem1dExpandedQpProblem


def plot_profile(problem: 'Fem1dExpandedQpProblem',
                 x_bounds: Sequence[Tuple[float, float]],
                 output_path: Optional[str] = None,
                 title: str = 'FEM QP Smoothing'):
    """
    Plot the last optimize() result of a problem.

    Args:
        problem: solved problem instance
        x_bounds: (lower, upper) per sample, drawn as the drivable tube
        output_path: save the figure here, or show it when None
        title: figure title
    """
    x = problem.x
    if len(x) == 0:
        print("[FEM-VIZ] No solution to plot, skipping visualization")
        return

    bounds = np.asarray(x_bounds, dtype=float)
    s = np.arange(len(x)) * problem.delta_s

    fig, axes = plt.subplots(3, 1, figsize=(10, 9), sharex=True)

    ax = axes[0]
    ax.fill_between(s, bounds[:, 0], bounds[:, 1], alpha=0.3, color='green', label='Bounds')
    ax.plot(s, 0.5 * (bounds[:, 0] + bounds[:, 1]), 'k:', linewidth=1, label='Mid Line')
    ax.plot(s, x, 'b-', linewidth=2, label='x')
    ax.set_ylabel('x', fontsize=12)
    ax.legend(loc='upper left', fontsize=10)

    axes[1].plot(s, problem.x_derivative, 'r-', linewidth=2)
    axes[1].set_ylabel("x'", fontsize=12)

    axes[2].plot(s, problem.x_second_order_derivative, 'm-', linewidth=2)
    axes[2].set_ylabel("x''", fontsize=12)
    axes[2].set_xlabel('s', fontsize=12)

    for ax in axes:
        ax.grid(True, alpha=0.3)
    axes[0].set_title(title, fontsize=14)

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches='tight')
        print(f"[FEM-VIZ] Saved to {output_path}")
    else:
        plt.show()

    plt.close(fig)
