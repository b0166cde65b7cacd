"""Top-level puzzle solve interface.

Expose `solve_puzzle(puzzle)` that accepts either a `PuzzleConfig` or a raw
puzzle dictionary compatible with `src.zebra.parser.parse_puzzle`.
"""

from typing import Any, Dict

from src.zebra import solver_core
from src.zebra.errors import UnsatisfiableError
from src.zebra.model import PuzzleConfig
from src.zebra.parser import parse_puzzle


def to_config(puzzle: Any) -> PuzzleConfig:
    if isinstance(puzzle, PuzzleConfig):
        return puzzle
    if isinstance(puzzle, dict):
        return parse_puzzle(puzzle)
    raise TypeError("solve_puzzle expects a PuzzleConfig or puzzle dictionary")


def name_assignment(solution, config: PuzzleConfig) -> Dict[str, str]:
    """Map an index-based solution to `House_<n>_<attribute>` -> display value (houses from 1)."""
    named: Dict[str, str] = {}
    for house, values in solution.items():
        for attr in config.attributes:
            named[f"House_{house + 1}_{attr}"] = config.display_value(attr, values[attr])
    return named


def solve_puzzle(puzzle: Any) -> Dict[str, str]:
    """
    Solve a puzzle and return a mapping from `House_<n>_<attribute>` to display value.
    Accepts:
      - PuzzleConfig instances (used directly)
      - Raw puzzle dictionaries (parsed via `parse_puzzle`)
    Returns an empty dict when the puzzle has no solution.
    """
    config = to_config(puzzle)
    try:
        solution = solver_core.solve(config)
    except UnsatisfiableError:
        return {}
    return name_assignment(solution, config)


__all__ = ["solve_puzzle", "to_config", "name_assignment"]
