"""
Command-line driver for sequential MC integration.

Usage:
    mc-integrate                                   # pi*sin over U(0, pi)
    mc-integrate --integrand exp --lower 0 --upper 1 --desired-error 1e-3
    mc-integrate --no-antithetic --repeat 20 --plot
    mc-integrate --relative --desired-error 0.001 --seed 7 --reset-stream
"""
import argparse
import math
import sys
from typing import Callable, Dict, List, Optional

import numpy as np
from scipy import integrate as sp_integrate

from mcintegration.config import ErrorMode, RunConfig
from mcintegration.exceptions import MCIntegrationError
from mcintegration.integrator import OneDimensionalMCIntegrator
from mcintegration.samplers import UniformSampler
from mcintegration.streams import StreamProvider
from mcintegration.utils import add_file_handler, get_logger, set_level

INTEGRANDS: Dict[str, Callable[[float], float]] = {
    "sin": math.sin,
    "identity": lambda x: x,
    "square": lambda x: x * x,
    "exp": math.exp,
    "constant": lambda x: 1.0,
}

# Default bounds per integrand
DEFAULT_BOUNDS = {
    "sin": (0.0, math.pi),
    "identity": (0.0, 1.0),
    "square": (0.0, 1.0),
    "exp": (0.0, 1.0),
    "constant": (0.0, 1.0),
}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    cfg = RunConfig()
    p = argparse.ArgumentParser(
        prog="mc-integrate",
        description="Sequential Monte Carlo integration of g(x) over [a, b]")
    p.add_argument("--integrand", default="sin", choices=sorted(INTEGRANDS))
    p.add_argument("--lower", type=float, default=None)
    p.add_argument("--upper", type=float, default=None)
    p.add_argument("--desired-error", type=float, default=0.01)
    p.add_argument("--relative", action="store_true",
                   help="interpret --desired-error relative to |estimate|")
    p.add_argument("--confidence", type=float, default=0.99)
    p.add_argument("--initial-size", type=int, default=100)
    p.add_argument("--max-size", type=int, default=100_000)
    p.add_argument("--no-antithetic", action="store_true")
    p.add_argument("--seed", type=int, default=cfg.seed)
    p.add_argument("--reset-stream", action="store_true",
                   help="rewind the random stream before each evaluation")
    p.add_argument("--repeat", type=int, default=1)
    p.add_argument("--plot", action="store_true")
    p.add_argument("--output-dir", default=cfg.output_dir)
    p.add_argument("--trace-interval", type=int, default=cfg.trace_interval)
    p.add_argument("--log-level", default=cfg.log_level)
    p.add_argument("--log-dir", default=cfg.log_dir)
    return p


def _banner(msg: str) -> None:
    print(f"\n{'='*60}\n  {msg}\n{'='*60}")


def _scaled(g: Callable[[float], float], a: float, b: float) -> Callable[[float], float]:
    """h(x) = (b - a) * g(x), so E[h(U(a, b))] is the integral of g over [a, b]."""
    width = b - a
    return lambda x: width * g(x)


def run(args: argparse.Namespace) -> int:
    log = get_logger("mcintegration.cli", level=args.log_level)
    if args.log_dir:
        add_file_handler(args.log_dir)
    set_level(args.log_level)

    lo, hi = DEFAULT_BOUNDS[args.integrand]
    a = lo if args.lower is None else args.lower
    b = hi if args.upper is None else args.upper
    g = INTEGRANDS[args.integrand]
    exact, _ = sp_integrate.quad(g, a, b)

    provider = StreamProvider(args.seed)
    sampler = UniformSampler(a, b, provider.next_stream())
    mc = OneDimensionalMCIntegrator(
        _scaled(g, a, b), sampler,
        desired_error=args.desired_error, confidence_level=args.confidence,
        initial_sample_size=args.initial_size, max_sample_size=args.max_size,
        error_mode=ErrorMode.RELATIVE if args.relative else ErrorMode.ABSOLUTE,
        antithetic=not args.no_antithetic,
        reset_stream_on_evaluate=args.reset_stream,
        trace_interval=args.trace_interval)

    _banner(f"MC INTEGRATION: {args.integrand}(x) over [{a:.4g}, {b:.4g}]")
    print(f"\n  Exact (quadrature): {exact:.6f}")

    estimates: List[float] = []
    evals: List[int] = []
    result = None
    for i in range(args.repeat):
        result = mc.evaluate()
        estimates.append(result.estimate)
        evals.append(result.n_function_evaluations)
        print(f"\n  Run {i + 1}:")
        print(result.summary())
        print(f"    |Error| vs exact: {abs(result.estimate - exact):.6f}")

    if args.repeat > 1:
        _banner("REPEATED RUNS")
        est = np.array(estimates)
        print(f"\n    Mean estimate:   {est.mean():.6f}")
        print(f"    Std of runs:     {est.std(ddof=1):.6f}")
        print(f"    Mean func evals: {np.mean(evals):,.0f}")

    if args.plot:
        from mcintegration.visualization.convergence_plots import (
            plot_convergence_trace, plot_estimate_distribution)
        paths = [plot_convergence_trace(
            mc.trace_frame(), desired_error=args.desired_error * (
                abs(result.estimate) if args.relative else 1.0),
            exact=exact, output_dir=args.output_dir,
            title=f"Sequential MC: {args.integrand}(x) on [{a:.3g}, {b:.3g}]")]
        if args.repeat > 1:
            paths.append(plot_estimate_distribution(estimates, exact, args.output_dir))
        for path in paths:
            log.info("Saved %s", path)

    return 0 if result is not None and result.converged else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.repeat < 1:
        print("error: --repeat must be >= 1", file=sys.stderr)
        return 2
    try:
        return run(args)
    except MCIntegrationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
