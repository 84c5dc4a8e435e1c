"""
Figures for sequential Monte Carlo integration runs.

Figures generated:
    01_convergence_trace.png       - Estimate +/- half-width vs sample size
    02_antithetic_comparison.png   - Cost to converge, independent vs antithetic
    03_estimate_distribution.png   - Estimates of repeated runs vs exact value

Author: Jose Orlando Bobadilla Fuentes, CQF
"""
import os
from typing import Optional, Sequence

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

NAVY = "#1a1a2e"; TEAL = "#16697a"; CORAL = "#db6400"
GOLD = "#c5a880"; SLATE = "#4a4e69"

plt.rcParams.update({
    "figure.facecolor": "white", "axes.facecolor": "white",
    "axes.grid": True, "grid.alpha": 0.3, "grid.linestyle": "--",
    "savefig.facecolor": "white",
})


def _wm(fig):
    fig.text(0.99, 0.01, "J. Bobadilla | CQF", fontsize=7,
             color="gray", alpha=0.5, ha="right", va="bottom")


def _sv(fig, output_dir, name):
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, name)
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path


def plot_convergence_trace(trace: pd.DataFrame, desired_error: float,
                           exact: Optional[float] = None,
                           output_dir: str = "outputs/figures",
                           title: str = "Sequential MC Convergence"):
    """Estimate with its confidence band, and half-width against O(1/sqrt(n))."""
    trace = trace[np.isfinite(trace["half_width"])]
    if trace.empty:
        raise ValueError("Trace has no finite half-widths to plot")
    n = trace["count"].to_numpy(dtype=float)
    mean = trace["mean"].to_numpy()
    hw = trace["half_width"].to_numpy()

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))
    ax1.semilogx(n, mean, "o-", color=TEAL, lw=2, label="MC Estimate")
    ax1.fill_between(n, mean - hw, mean + hw, alpha=0.2, color=TEAL)
    if exact is not None:
        ax1.axhline(exact, color=CORAL, ls="--", lw=2, label=f"Exact = {exact:.4f}")
    ax1.set_xlabel("Observations")
    ax1.set_ylabel("Estimate")
    ax1.set_title("Estimate and Confidence Band")
    ax1.legend()

    ax2.loglog(n, hw, "o-", color=NAVY, lw=2, label="Half-width")
    ax2.loglog(n, hw[0] * np.sqrt(n[0] / n), "--", color=GOLD, lw=2,
               label=r"$O(1/\sqrt{n})$")
    ax2.axhline(desired_error, color=CORAL, ls=":", lw=2, label="Target")
    pilot = trace.loc[trace["phase"] == "pilot", "count"]
    if not pilot.empty:
        ax2.axvline(pilot.iloc[-1], color=SLATE, ls=":", alpha=0.6, label="End of pilot")
    ax2.set_xlabel("Observations")
    ax2.set_ylabel("Half-width")
    ax2.set_title("Precision vs Sample Size")
    ax2.legend()
    fig.suptitle(title, fontsize=15, fontweight="bold", y=1.02)
    fig.tight_layout()
    _wm(fig)
    return _sv(fig, output_dir, "01_convergence_trace.png")


def plot_antithetic_comparison(independent_evals: Sequence[int],
                               antithetic_evals: Sequence[int],
                               output_dir: str = "outputs/figures"):
    """Function evaluations needed to converge with and without pairing."""
    fig, ax = plt.subplots(figsize=(9, 5))
    means = [np.mean(independent_evals), np.mean(antithetic_evals)]
    bars = ax.bar(["Independent", "Antithetic"], means,
                  color=[TEAL, CORAL], edgecolor="white", lw=1.5)
    for bar, val in zip(bars, means):
        ax.text(bar.get_x() + bar.get_width()/2, bar.get_height(),
                f"{val:,.0f}", ha="center", va="bottom", fontsize=10, fontweight="bold")
    ax.set_ylabel("Function Evaluations")
    ax.set_title("Cost to Reach the Target Precision")
    _wm(fig)
    return _sv(fig, output_dir, "02_antithetic_comparison.png")


def plot_estimate_distribution(estimates: Sequence[float], exact: Optional[float] = None,
                               output_dir: str = "outputs/figures"):
    """Histogram of estimates from repeated, independently seeded runs."""
    est = np.asarray(estimates, dtype=float)
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.hist(est, bins=max(5, min(40, est.size // 2)), color=TEAL,
            alpha=0.7, edgecolor="white", density=True)
    ax.axvline(est.mean(), color=NAVY, lw=2, label=f"Mean = {est.mean():.5f}")
    if exact is not None:
        ax.axvline(exact, color=CORAL, ls="--", lw=2, label=f"Exact = {exact:.5f}")
    ax.set_xlabel("Estimate")
    ax.set_ylabel("Density")
    ax.set_title(f"Estimates over {est.size} Runs")
    ax.legend()
    _wm(fig)
    return _sv(fig, output_dir, "03_estimate_distribution.png")
