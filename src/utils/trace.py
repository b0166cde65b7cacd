"""Tracing module: records propagation and search steps and writes them to CSV."""

import csv
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class TraceStep:
    """A single step in the solving process."""

    timestamp: float
    step_number: int
    action_type: str  # 'assign', 'backtrack', 'conflict', 'propagation_pass', 'domain_reduced', ...
    house: Optional[int] = None
    attribute: Optional[str] = None
    value: Optional[Any] = None
    candidates: Optional[int] = None
    depth: Optional[int] = None  # search depth (number of guesses on the current path)
    resolved_slots: Optional[int] = None
    reason: Optional[str] = None


class Tracer:
    """Records solver steps for logging and analysis."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.steps: List[TraceStep] = []
        self.start_time = datetime.now().timestamp()
        self.step_counter = 0

    def _get_timestamp(self) -> float:
        """Get elapsed time in seconds since tracer creation."""
        return datetime.now().timestamp() - self.start_time

    def _record(self, action_type: str, **fields: Any) -> None:
        if not self.enabled:
            return
        self.step_counter += 1
        self.steps.append(TraceStep(
            timestamp=self._get_timestamp(),
            step_number=self.step_counter,
            action_type=action_type,
            **fields,
        ))

    def log_assign(self, house: int, attribute: str, value: int, candidates: int, depth: int):
        """Log a guessed value on a cloned branch."""
        self._record(
            'assign',
            house=house,
            attribute=attribute,
            value=value,
            candidates=candidates,
            depth=depth,
        )

    def log_backtrack(self, house: int, attribute: str, depth: int, reason: str = "No candidate led to a solution"):
        """Log a slot whose candidates were all exhausted."""
        self._record('backtrack', house=house, attribute=attribute, depth=depth, reason=reason)

    def log_conflict(self, reason: str, depth: int):
        """Log a contradiction that closed a branch."""
        self._record('conflict', depth=depth, reason=reason)

    def log_propagation_pass(self, pass_number: int, resolved_slots: int, changed: bool):
        """Log one full pass over the constraint list."""
        self._record(
            'propagation_pass',
            value=pass_number,
            resolved_slots=resolved_slots,
            reason="changed" if changed else "fixed point",
        )

    def log_domain_reduction(self, house: int, attribute: str, value: int, reason: str = ""):
        """Log a slot resolved because only one candidate remained."""
        self._record('domain_reduced', house=house, attribute=attribute, value=value, reason=reason)

    def log_solution_found(self, resolved_slots: int, depth: int = 0):
        """Log when a solution is found."""
        self._record('solution_found', resolved_slots=resolved_slots, depth=depth)

    def to_csv(self, filepath: Path) -> None:
        """Write trace to CSV file."""
        if not self.steps:
            print("No trace steps to write")
            return

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        fieldnames = [
            'timestamp', 'step_number', 'action_type', 'house', 'attribute', 'value',
            'candidates', 'depth', 'resolved_slots', 'reason'
        ]

        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for step in self.steps:
                writer.writerow(asdict(step))

        print(f"Trace written to {filepath} ({len(self.steps)} steps)")

    def summary(self) -> Dict[str, Any]:
        """Get a summary of the trace."""
        action_counts = {}
        for step in self.steps:
            action_counts[step.action_type] = action_counts.get(step.action_type, 0) + 1

        return {
            'total_steps': len(self.steps),
            'elapsed_time_seconds': self._get_timestamp(),
            'action_counts': action_counts,
            'num_assignments': action_counts.get('assign', 0),
            'num_backtracks': action_counts.get('backtrack', 0),
            'num_passes': action_counts.get('propagation_pass', 0),
        }


# Global tracer instance
_global_tracer: Optional[Tracer] = None


def get_tracer() -> Tracer:
    """Get or create the global tracer."""
    global _global_tracer
    if _global_tracer is None:
        _global_tracer = Tracer(enabled=True)
    return _global_tracer


def reset_tracer() -> None:
    """Reset the global tracer."""
    global _global_tracer
    _global_tracer = None


def enable_tracing(enabled: bool = True) -> None:
    """Enable or disable tracing."""
    get_tracer().enabled = enabled
