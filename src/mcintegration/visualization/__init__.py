"""Convergence figures for sequential Monte Carlo runs."""
