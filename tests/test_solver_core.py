"""Tests for the fixed-point driver, backtracking search and solution extraction."""

import pytest

from src.utils.trace import get_tracer, reset_tracer
from src.zebra import solver_core
from src.zebra.errors import (
    BoundsError,
    IncompleteSolutionError,
    ParseError,
    UnsatisfiableError,
)
from src.zebra.model import PuzzleConfig, SlotStore
from src.zebra.parser import compile_constraints, parse_puzzle
from src.zebra.puzzles import CLASSIC_ZEBRA
from src.zebra.rules import apply_closure, apply_constraint, is_satisfied


def _two_house_config(*constraints):
    return PuzzleConfig(
        num_houses=2,
        attributes=("color", "pet"),
        domains={"color": ("red", "blue"), "pet": ("cat", "dog")},
        constraints=tuple(constraints),
    )


def _three_house_config(*constraints):
    return PuzzleConfig(
        num_houses=3,
        attributes=("color", "pet"),
        domains={"color": ("a", "b", "c"), "pet": ("x", "y", "z")},
        constraints=tuple(constraints),
    )


def _assert_bijection(solution, config):
    for attr in config.attributes:
        values = [solution[house][attr] for house in range(config.num_houses)]
        assert sorted(values) == list(range(config.num_houses))


def _assert_satisfies(solution, config):
    assert all(is_satisfied(c, solution) for c in compile_constraints(config))


def test_equality_scenario_is_solved():
    config = _two_house_config("color/0 == pet/0")
    solution = solver_core.solve(config)

    as_dict = {h: dict(v) for h, v in solution.items()}
    assert as_dict in (
        {0: {"color": 0, "pet": 0}, 1: {"color": 1, "pet": 1}},
        {0: {"color": 1, "pet": 1}, 1: {"color": 0, "pet": 0}},
    )
    _assert_bijection(solution, config)
    _assert_satisfies(solution, config)


def test_same_attribute_equality_is_unsatisfiable():
    config = PuzzleConfig(
        num_houses=2,
        attributes=("color",),
        domains={"color": ("red", "blue")},
        constraints=("color/0 == color/1",),
    )
    with pytest.raises(UnsatisfiableError):
        solver_core.solve(config)


def test_adjacency_at_boundary_forces_neighbour():
    config = _three_house_config("color/0 next pet/0", "pet/0 == number/0")

    store = SlotStore.for_config(config)
    solver_core.propagate_to_fixed_point(store, compile_constraints(config))
    assert store.certain(0, "pet") == 0
    assert store.certain(1, "color") == 0

    solution = solver_core.solve(config)
    assert solution[0]["pet"] == 0
    assert solution[1]["color"] == 0
    _assert_bijection(solution, config)
    _assert_satisfies(solution, config)


def test_inert_annotation_has_no_effect():
    plain = _three_house_config("color/0 next pet/0", "pet/0 == number/0")
    annotated = _three_house_config("color/0 next pet/0", "pet/0?", "pet/0 == number/0")

    assert dict(solver_core.solve(plain)) == dict(solver_core.solve(annotated))


def test_conflicting_pins_are_unsatisfiable():
    config = _three_house_config("color/0 == number/0", "color/0 == number/1")
    with pytest.raises(UnsatisfiableError):
        solver_core.solve(config)


def test_offset_without_room_is_unsatisfiable():
    config = _two_house_config("color/0 +1 color/1", "color/1 == number/0")
    with pytest.raises(UnsatisfiableError):
        solver_core.solve(config)


def test_classic_zebra():
    config = parse_puzzle(CLASSIC_ZEBRA)
    solution = solver_core.solve(config)

    expected = {
        0: {"color": 4, "nationality": 3, "drink": 4, "smoke": 1, "pet": 3},
        1: {"color": 3, "nationality": 2, "drink": 3, "smoke": 2, "pet": 4},
        2: {"color": 2, "nationality": 0, "drink": 1, "smoke": 0, "pet": 2},
        3: {"color": 0, "nationality": 1, "drink": 2, "smoke": 4, "pet": 1},
        4: {"color": 1, "nationality": 4, "drink": 0, "smoke": 3, "pet": 0},
    }
    assert {h: dict(v) for h, v in solution.items()} == expected
    _assert_bijection(solution, config)
    _assert_satisfies(solution, config)


def test_fixed_point_is_idempotent_on_solved_store():
    config = parse_puzzle(CLASSIC_ZEBRA)
    constraints = compile_constraints(config)
    outcome = solver_core.solve_store(SlotStore.for_config(config), constraints)
    assert outcome.solved

    before = outcome.store.snapshot()
    passes = solver_core.propagate_to_fixed_point(outcome.store, constraints)
    assert passes == 1
    assert outcome.store.snapshot() == before


def test_single_pass_is_monotonic():
    config = parse_puzzle(CLASSIC_ZEBRA)
    constraints = compile_constraints(config)
    store = SlotStore.for_config(config)
    previous = store.clone()

    for constraint in constraints:
        apply_constraint(store, constraint)
    apply_closure(store)

    for house, attr, slot in previous.iter_slots():
        after = store.slot(house, attr)
        if slot.certain is not None:
            assert after.certain == slot.certain
        assert slot.excluded <= after.excluded
    assert store.snapshot() != previous.snapshot()


def test_search_guesses_first_unresolved_slot_first():
    reset_tracer()
    solver_core.solve(_two_house_config("color/0 == pet/0"))

    guesses = [s for s in get_tracer().steps if s.action_type == "assign"]
    assert guesses
    assert (guesses[0].house, guesses[0].attribute, guesses[0].value) == (0, "color", 0)
    reset_tracer()


def test_unsatisfiable_search_records_backtrack():
    reset_tracer()
    config = PuzzleConfig(
        num_houses=2,
        attributes=("color",),
        domains={"color": ("red", "blue")},
        constraints=("color/0 == color/1",),
    )
    with pytest.raises(UnsatisfiableError):
        solver_core.solve(config)

    summary = get_tracer().summary()
    assert summary["num_assignments"] == 2
    assert summary["num_backtracks"] == 1
    reset_tracer()


def test_failed_branch_does_not_touch_parent_store():
    config = _two_house_config("color/0 == pet/0")
    store = SlotStore.for_config(config)
    before = store.snapshot()
    outcome = solver_core.solve_store(store.clone(), compile_constraints(config))
    assert outcome.solved
    assert store.snapshot() == before


def test_adjacency_with_single_house_is_bounds_error():
    config = PuzzleConfig(
        num_houses=1,
        attributes=("color",),
        domains={"color": ("red",)},
        constraints=("color/0 next color/0",),
    )
    with pytest.raises(BoundsError):
        solver_core.solve(config)


def test_offset_with_single_house_is_bounds_error():
    config = PuzzleConfig(
        num_houses=1,
        attributes=("color",),
        domains={"color": ("red",)},
        constraints=("color/0 +1 color/0",),
    )
    with pytest.raises(BoundsError):
        solver_core.solve(config)


def test_unknown_attribute_is_parse_error():
    with pytest.raises(ParseError):
        solver_core.solve(_two_house_config("color/0 == smell/1"))


def test_extract_solution_rejects_incomplete_store():
    store = SlotStore.for_config(_two_house_config())
    with pytest.raises(IncompleteSolutionError):
        solver_core.extract_solution(store)


def test_extracted_solution_is_read_only():
    solution = solver_core.solve(_two_house_config("color/0 == pet/0"))
    with pytest.raises(TypeError):
        solution[0]["color"] = 1
    with pytest.raises(TypeError):
        solution[2] = {}
