"""Constraint propagation and backtracking search for zebra-style puzzles."""

from .errors import (
    BoundsError,
    ConflictError,
    IncompleteSolutionError,
    ParseError,
    PuzzleError,
    UnsatisfiableError,
)
from .model import PuzzleConfig, SlotStore
from .parser import Constraint, ConstraintKind, parse_constraint, parse_puzzle
from .solver_core import solve

__all__ = [
    "PuzzleConfig",
    "SlotStore",
    "Constraint",
    "ConstraintKind",
    "parse_constraint",
    "parse_puzzle",
    "solve",
    "PuzzleError",
    "ParseError",
    "BoundsError",
    "ConflictError",
    "UnsatisfiableError",
    "IncompleteSolutionError",
]
