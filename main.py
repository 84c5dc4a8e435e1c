"""
Sequential Monte Carlo Integration - Main Analysis
====================================================

Demonstrates: pilot + refill stopping rule, antithetic vs independent
sampling, determinism under stream reset, relative-error mode, resuming a
run that hit its sample ceiling, and convergence figures.

Usage:
    python main.py                   # full demo
    python main.py --cli [ARGS...]   # forward to the mc-integrate driver

Author: Jose Orlando Bobadilla Fuentes | CQF
"""

import math
import os
import sys

from scipy import stats

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from mcintegration.config import ErrorMode
from mcintegration.integrator import OneDimensionalMCIntegrator
from mcintegration.samplers import InverseTransformSampler, UniformSampler
from mcintegration.streams import StreamProvider
from mcintegration.visualization.convergence_plots import (
    plot_antithetic_comparison, plot_convergence_trace, plot_estimate_distribution)


def header(t):
    print(f"\n{'='*70}\n  {t}\n{'='*70}")


def main():
    header("SEQUENTIAL MONTE CARLO INTEGRATION")
    provider = StreamProvider(seed=2024)
    h = lambda x: math.pi * math.sin(x)

    # --- 1. PILOT, THEN REFILL ---
    header("1. INTEGRAL OF sin(x) ON [0, pi] (exact = 2)")
    mc = OneDimensionalMCIntegrator(h, UniformSampler(0.0, math.pi, provider.next_stream()),
                                    desired_error=0.01, max_sample_size=100_000)
    mc.run_pilot()
    print("\n  [a] After pilot:")
    print(mc.result().summary())
    print(f"    Projected n: {mc.engine.projected_sample_size():,}")
    mc.run_main()
    print("\n  [b] After refill:")
    print(mc.result().summary())
    trace = mc.trace_frame()

    # --- 2. ANTITHETIC VS INDEPENDENT ---
    header("2. ANTITHETIC VS INDEPENDENT: E[exp(U)] = e - 1")
    costs = {}
    for anti in (False, True):
        r = OneDimensionalMCIntegrator(
            math.exp, UniformSampler(0.0, 1.0, provider.next_stream()),
            desired_error=0.001, antithetic=anti).evaluate()
        costs[anti] = r.n_function_evaluations
        print(f"\n  {'Antithetic' if anti else 'Independent'}:")
        print(r.summary())
    print(f"\n    Exact: {math.e - 1:.6f}")

    # --- 3. REPRODUCIBILITY ---
    header("3. DETERMINISM UNDER STREAM RESET")
    rep = OneDimensionalMCIntegrator(lambda x: x, UniformSampler(0.0, 1.0, provider.next_stream()),
                                     desired_error=0.005, antithetic=False,
                                     reset_stream_on_evaluate=True)
    r1, r2 = rep.evaluate(), rep.evaluate()
    print(f"\n    Run 1: {r1.estimate:.10f}  n={r1.n_observations}")
    print(f"    Run 2: {r2.estimate:.10f}  n={r2.n_observations}")

    # --- 4. RELATIVE ERROR, IMPORTANCE SAMPLER ---
    header("4. RELATIVE ERROR: E[X^2], X ~ Weibull(2, 1) (exact = 1)")
    wb = InverseTransformSampler(stats.weibull_min(c=2.0, scale=1.0), provider.next_stream())
    rel = OneDimensionalMCIntegrator(lambda x: x * x, wb, desired_error=0.01,
                                     error_mode=ErrorMode.RELATIVE)
    print(rel.evaluate().summary())

    # --- 5. RESUME ---
    header("5. RESUMING A RUN THAT HIT ITS CEILING")
    res = OneDimensionalMCIntegrator(h, UniformSampler(0.0, math.pi, provider.next_stream()),
                                     desired_error=0.01, max_sample_size=2_000)
    print("\n  [a] max_sample_size = 2,000:")
    print(res.evaluate().summary())
    print("\n  [b] resumed with max_sample_size = 200,000:")
    print(res.resume(max_sample_size=200_000).summary())

    # --- 6. REPEATED RUNS ---
    header("6. REPEATED RUNS")
    estimates = []
    for _ in range(50):
        r = OneDimensionalMCIntegrator(
            h, UniformSampler(0.0, math.pi, provider.next_stream()),
            desired_error=0.02).evaluate()
        estimates.append(r.estimate)
    cover = sum(abs(e - 2.0) <= 0.02 for e in estimates) / len(estimates)
    print(f"\n    Runs within desired error: {cover:.0%}")

    # --- 7. VISUALIZATIONS ---
    header("7. VISUALIZATIONS")
    out = "outputs/figures"
    plot_convergence_trace(trace, desired_error=0.01, exact=2.0, output_dir=out)
    plot_antithetic_comparison([costs[False]], [costs[True]], output_dir=out)
    plot_estimate_distribution(estimates, exact=2.0, output_dir=out)

    header("ANALYSIS COMPLETE")
    print(f"\n  Outputs: {out}/")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--cli":
        from mcintegration.cli import main as cli_main
        sys.exit(cli_main(sys.argv[2:]))
    main()
