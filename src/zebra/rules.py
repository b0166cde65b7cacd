"""Propagation rules for the three constraint kinds plus the closure rule.

Every rule only adds knowledge to the store, so applying a rule twice is the
same as applying it once. Contradictions surface as ``ConflictError`` from the
store itself.
"""

from typing import List, Mapping, Optional, Tuple

from .errors import BoundsError
from .model import NUMBER, SlotStore
from .parser import Constraint, ConstraintKind, Operand

Assignment = Mapping[int, Mapping[str, int]]


def apply_equality(store: SlotStore, constraint: Constraint) -> None:
    """Both operands live in the same house."""
    a, b = constraint.left, constraint.right
    for house in range(store.num_houses):
        if store.holds(house, b.attribute, b.value):
            store.set_certain(house, a.attribute, a.value)
        elif store.holds(house, a.attribute, a.value):
            store.set_certain(house, b.attribute, b.value)

        if store.rules_out(house, a.attribute, a.value):
            store.exclude(house, b.attribute, b.value)
        if store.rules_out(house, b.attribute, b.value):
            store.exclude(house, a.attribute, a.value)


def _require_neighbours(store: SlotStore, constraint: Constraint) -> None:
    if store.num_houses < 2:
        raise BoundsError(
            f"{constraint.description!r} needs at least two houses, got {store.num_houses}"
        )


def _force_neighbour(store: SlotStore, house: int, operand: Operand) -> None:
    last = store.num_houses - 1
    if house == 0:
        store.set_certain(1, operand.attribute, operand.value)
    elif house == last:
        store.set_certain(last - 1, operand.attribute, operand.value)
    elif store.rules_out(house + 1, operand.attribute, operand.value):
        store.set_certain(house - 1, operand.attribute, operand.value)
    elif store.rules_out(house - 1, operand.attribute, operand.value):
        store.set_certain(house + 1, operand.attribute, operand.value)


def apply_adjacency(store: SlotStore, constraint: Constraint) -> None:
    """The operands live in neighbouring houses, in either order."""
    _require_neighbours(store, constraint)
    a, b = constraint.left, constraint.right
    house = store.house_of(b.attribute, b.value)
    if house is not None:
        _force_neighbour(store, house, a)
    house = store.house_of(a.attribute, a.value)
    if house is not None:
        _force_neighbour(store, house, b)


def apply_offset(store: SlotStore, constraint: Constraint) -> None:
    """The left operand's house is directly before the right operand's house."""
    _require_neighbours(store, constraint)
    a, b = constraint.left, constraint.right
    last = store.num_houses - 1

    # Nothing precedes the first house and nothing follows the last one.
    store.exclude(0, b.attribute, b.value)
    store.exclude(last, a.attribute, a.value)

    for house in range(store.num_houses):
        if store.holds(house, b.attribute, b.value):
            store.set_certain(house - 1, a.attribute, a.value)
        elif store.holds(house, a.attribute, a.value):
            store.set_certain(house + 1, b.attribute, b.value)

        if house != 0 and store.rules_out(house, b.attribute, b.value):
            store.exclude(house - 1, a.attribute, a.value)
        if house != last and store.rules_out(house, a.attribute, a.value):
            store.exclude(house + 1, b.attribute, b.value)


_RULES = {
    ConstraintKind.EQUAL: apply_equality,
    ConstraintKind.NEXT: apply_adjacency,
    ConstraintKind.OFFSET: apply_offset,
}


def apply_constraint(store: SlotStore, constraint: Constraint) -> None:
    _RULES[constraint.kind](store, constraint)


def apply_closure(store: SlotStore) -> List[Tuple[int, str, int]]:
    """Make the last remaining value certain wherever only one is left.

    Returns the (house, attribute, value) triples that became certain.
    """
    derived: List[Tuple[int, str, int]] = []
    for house, attr, slot in store.iter_slots():
        if slot.certain is not None:
            continue
        if len(slot.excluded) == store.num_houses - 1:
            remaining = store.candidates(house, attr)[0]
            if store.set_certain(house, attr, remaining):
                derived.append((house, attr, remaining))
    return derived


def _position(assignment: Assignment, operand: Operand) -> Optional[int]:
    if operand.attribute == NUMBER:
        return operand.value if operand.value in assignment else None
    for house, values in assignment.items():
        if values.get(operand.attribute) == operand.value:
            return house
    return None


def is_satisfied(constraint: Constraint, assignment: Assignment) -> bool:
    """Evaluate ``constraint`` against a complete house -> attribute -> index mapping."""
    pa = _position(assignment, constraint.left)
    pb = _position(assignment, constraint.right)
    if pa is None or pb is None:
        return False
    if constraint.kind is ConstraintKind.EQUAL:
        return pa == pb
    if constraint.kind is ConstraintKind.NEXT:
        return abs(pa - pb) == 1
    return pa + 1 == pb
