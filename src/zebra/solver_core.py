"""Fixed-point propagation with depth-first backtracking over cloned stores."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence

from .errors import ConflictError, IncompleteSolutionError, UnsatisfiableError
from .model import NUMBER, PuzzleConfig, SlotStore
from .parser import Constraint, compile_constraints
from .rules import apply_closure, apply_constraint, is_satisfied
from src.utils.trace import Tracer, get_tracer

Solution = Mapping[int, Mapping[str, int]]


@dataclass
class SearchOutcome:
    """Result of solving one branch: the solved store, or why the branch failed."""

    store: Optional[SlotStore] = None
    reason: str = ""

    @property
    def solved(self) -> bool:
        return self.store is not None


def solve(config: PuzzleConfig) -> Solution:
    """
    Solve a puzzle configuration.
    Returns a read-only mapping house -> attribute -> value index.
    Raises UnsatisfiableError when no assignment satisfies every constraint.
    """
    tracer = get_tracer()
    constraints = compile_constraints(config)
    outcome = solve_store(SlotStore.for_config(config), constraints, tracer)
    if not outcome.solved:
        raise UnsatisfiableError(
            f"No solution exists for this configuration ({outcome.reason})"
        )
    return extract_solution(outcome.store, config.attributes)


def propagate_to_fixed_point(
    store: SlotStore, constraints: Sequence[Constraint], tracer: Optional[Tracer] = None
) -> int:
    """
    Apply every constraint and the closure rule until a full pass changes nothing.
    Returns the number of passes run. Raises ConflictError on a contradiction.
    """
    tracer = tracer or get_tracer()
    passes = 0
    before = store.snapshot()
    while True:
        passes += 1
        for constraint in constraints:
            apply_constraint(store, constraint)
        for house, attr, value in apply_closure(store):
            tracer.log_domain_reduction(house, attr, value, reason="last remaining value")

        after = store.snapshot()
        changed = after != before
        tracer.log_propagation_pass(passes, store.resolved_count(), changed)
        if not changed:
            return passes
        before = after


def solve_store(
    store: SlotStore,
    constraints: Sequence[Constraint],
    tracer: Optional[Tracer] = None,
    depth: int = 0,
) -> SearchOutcome:
    """Run the fixed-point driver on ``store`` and guess when it stalls."""
    tracer = tracer or get_tracer()
    try:
        propagate_to_fixed_point(store, constraints, tracer)
    except ConflictError as exc:
        tracer.log_conflict(str(exc), depth)
        return SearchOutcome(reason=str(exc))

    if not store.is_complete():
        return _guess(store, constraints, tracer, depth)

    violated = _first_violation(store, constraints)
    if violated is not None:
        reason = f"Assignment violates {violated.description}"
        tracer.log_conflict(reason, depth)
        return SearchOutcome(reason=reason)

    tracer.log_solution_found(resolved_slots=store.resolved_count(), depth=depth)
    return SearchOutcome(store=store)


def _guess(
    store: SlotStore, constraints: Sequence[Constraint], tracer: Tracer, depth: int
) -> SearchOutcome:
    house, attr = store.first_unresolved()
    candidates = store.candidates(house, attr)

    for value in candidates:
        branch = store.clone()
        tracer.log_assign(house, attr, value, candidates=len(candidates), depth=depth + 1)
        try:
            branch.set_certain(house, attr, value)
        except ConflictError as exc:
            tracer.log_conflict(str(exc), depth + 1)
            continue

        outcome = solve_store(branch, constraints, tracer, depth + 1)
        if outcome.solved:
            return outcome

    tracer.log_backtrack(house, attr, depth)
    return SearchOutcome(reason=f"no candidate for house {house} {attr} leads to a solution")


def _assignment(store: SlotStore, attributes: Sequence[str]) -> Dict[int, Dict[str, int]]:
    return {
        house: {attr: store.certain(house, attr) for attr in attributes}
        for house in range(store.num_houses)
    }


def _first_violation(store: SlotStore, constraints: Sequence[Constraint]) -> Optional[Constraint]:
    assignment = _assignment(store, [a for a in store.attributes if a != NUMBER])
    for constraint in constraints:
        if not is_satisfied(constraint, assignment):
            return constraint
    return None


def extract_solution(store: SlotStore, attributes: Optional[Sequence[str]] = None) -> Solution:
    """Read-only house -> attribute -> value index mapping of a solved store."""
    if not store.is_complete():
        raise IncompleteSolutionError(
            f"{store.resolved_count()} of {len(store.attributes) * store.num_houses} slots resolved"
        )
    if attributes is None:
        attributes = [a for a in store.attributes if a != NUMBER]
    assignment = _assignment(store, attributes)
    return MappingProxyType({
        house: MappingProxyType(values) for house, values in assignment.items()
    })
