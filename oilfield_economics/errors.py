"""Failure taxonomy for the economics engine.

Numerical degeneracies inside a single calculation (zero decline exponent,
exhausted reserves, empty denominators) are resolved locally and never reach
the caller. Only the three kinds below cross a component boundary.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    configuration_error = "configuration_error"
    numerical_non_convergence = "numerical_non_convergence"
    arithmetic_degeneracy = "arithmetic_degeneracy"


class EngineFailure(Exception):
    """Base class for all engine failures."""

    kind: ErrorKind = ErrorKind.configuration_error


class ConfigurationError(EngineFailure):
    """Non-finite or out-of-domain inputs (negative durations, reserves vs. rates, capacity)."""

    kind = ErrorKind.configuration_error


class NumericalNonConvergence(EngineFailure):
    """A root-finder could not bracket or converge on a solution."""

    kind = ErrorKind.numerical_non_convergence


class ArithmeticDegeneracy(EngineFailure):
    """A denominator vanished where no local fallback exists."""

    kind = ErrorKind.arithmetic_degeneracy
