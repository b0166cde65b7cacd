"""Puzzle configuration and the per-slot knowledge store."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Hashable, Iterator, List, Mapping, Optional, Set, Tuple

from .errors import BoundsError, ConflictError

NUMBER = "number"

SlotKey = Tuple[int, str]


@dataclass(frozen=True)
class PuzzleConfig:
    """Immutable description of one puzzle.

    ``attributes`` keeps the configured order, ``domains`` maps each attribute to
    exactly ``num_houses`` distinct display values and ``constraints`` holds the
    raw constraint expressions. The implicit ``number`` attribute is never
    configured; the store adds it on its own.
    """

    num_houses: int
    attributes: Tuple[str, ...]
    domains: Mapping[str, Tuple[str, ...]]
    constraints: Tuple[str, ...] = ()
    puzzle_id: str = "unknown"

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", tuple(self.attributes))
        object.__setattr__(self, "constraints", tuple(self.constraints))
        object.__setattr__(
            self,
            "domains",
            MappingProxyType({k: tuple(v) for k, v in self.domains.items()}),
        )

        if not isinstance(self.num_houses, int) or self.num_houses < 1:
            raise ValueError(f"House count must be a positive integer, got {self.num_houses!r}")
        if len(set(self.attributes)) != len(self.attributes):
            raise ValueError("Attribute names must be unique")
        if NUMBER in self.attributes:
            raise ValueError(f"'{NUMBER}' is reserved for the house position")

        for attr in self.attributes:
            if attr not in self.domains:
                raise ValueError(f"Missing domain for attribute '{attr}'")
            values = self.domains[attr]
            if len(values) != self.num_houses:
                raise ValueError(
                    f"Domain of '{attr}' has {len(values)} values, expected {self.num_houses}"
                )
            if len(set(values)) != len(values):
                raise ValueError(f"Domain of '{attr}' contains duplicate values")

    @property
    def store_attributes(self) -> Tuple[str, ...]:
        """Attribute order used by the store: ``number`` first, then the configured ones."""
        return (NUMBER,) + tuple(self.attributes)

    def display_value(self, attribute: str, index: Optional[int]) -> str:
        if index is None:
            return " "
        if attribute == NUMBER:
            return str(index)
        return str(self.domains[attribute][index])


@dataclass
class Slot:
    certain: Optional[int] = None
    excluded: Set[int] = field(default_factory=set)

    def copy(self) -> "Slot":
        return Slot(certain=self.certain, excluded=set(self.excluded))


class SlotStore:
    """Certainty and exclusion knowledge for every (house, attribute) slot.

    ``set_certain`` and ``exclude`` are the only writers. Both keep the slot
    invariants: a certain value is never replaced, a certain value is never
    excluded, and a value certain for one house is excluded from the same
    attribute on every other house.
    """

    def __init__(self, num_houses: int, attributes: Tuple[str, ...]):
        self.num_houses = num_houses
        self.attributes: Tuple[str, ...] = tuple(attributes)
        self._slots: Dict[SlotKey, Slot] = {
            (house, attr): Slot() for house in range(num_houses) for attr in self.attributes
        }
        if NUMBER in self.attributes:
            for house in range(num_houses):
                self.set_certain(house, NUMBER, house)

    @classmethod
    def for_config(cls, config: PuzzleConfig) -> "SlotStore":
        return cls(config.num_houses, config.store_attributes)

    def _check_house(self, house: int, attribute: str, value: int) -> None:
        if house < 0 or house >= self.num_houses:
            raise BoundsError(
                f"Out of bounds: house {house}, attribute {attribute}, value {value}"
            )

    def _check_value(self, house: int, attribute: str, value: int) -> None:
        if value < 0 or value >= self.num_houses:
            raise BoundsError(
                f"Out of bounds: value {value} for attribute {attribute} on house {house}"
            )

    def slot(self, house: int, attribute: str) -> Slot:
        return self._slots[(house, attribute)]

    def certain(self, house: int, attribute: str) -> Optional[int]:
        return self._slots[(house, attribute)].certain

    def excluded(self, house: int, attribute: str) -> Set[int]:
        return set(self._slots[(house, attribute)].excluded)

    def holds(self, house: int, attribute: str, value: int) -> bool:
        return self._slots[(house, attribute)].certain == value

    def rules_out(self, house: int, attribute: str, value: int) -> bool:
        """True when the slot is known not to hold ``value``."""
        slot = self._slots[(house, attribute)]
        if slot.certain is not None:
            return slot.certain != value
        return value in slot.excluded

    def house_of(self, attribute: str, value: int) -> Optional[int]:
        for house in range(self.num_houses):
            if self._slots[(house, attribute)].certain == value:
                return house
        return None

    def candidates(self, house: int, attribute: str) -> List[int]:
        slot = self._slots[(house, attribute)]
        if slot.certain is not None:
            return [slot.certain]
        return [v for v in range(self.num_houses) if v not in slot.excluded]

    def set_certain(self, house: int, attribute: str, value: int) -> bool:
        """Record ``value`` as certain. Returns True when the store changed."""
        self._check_house(house, attribute, value)
        self._check_value(house, attribute, value)
        slot = self._slots[(house, attribute)]
        if slot.certain is not None:
            if slot.certain == value:
                return False
            raise ConflictError(
                f"House {house} {attribute}: already {slot.certain}, cannot become {value}"
            )
        if value in slot.excluded:
            raise ConflictError(
                f"House {house} {attribute}: {value} was already ruled out"
            )

        slot.certain = value
        for other in range(self.num_houses):
            if other != value:
                self.exclude(house, attribute, other)
        for other_house in range(self.num_houses):
            if other_house != house:
                self.exclude(other_house, attribute, value)
        return True

    def exclude(self, house: int, attribute: str, value: int) -> bool:
        """Rule ``value`` out for the slot. Returns True when the store changed."""
        self._check_house(house, attribute, value)
        self._check_value(house, attribute, value)
        slot = self._slots[(house, attribute)]
        if value in slot.excluded:
            return False
        if slot.certain == value:
            raise ConflictError(
                f"House {house} {attribute}: cannot rule out its certain value {value}"
            )
        slot.excluded.add(value)
        if len(slot.excluded) >= self.num_houses:
            raise ConflictError(f"House {house} {attribute}: no candidate values left")
        return True

    def iter_slots(self) -> Iterator[Tuple[int, str, Slot]]:
        """Slots in search order: ascending house, then store attribute order."""
        for house in range(self.num_houses):
            for attr in self.attributes:
                yield house, attr, self._slots[(house, attr)]

    def first_unresolved(self) -> Optional[SlotKey]:
        for house, attr, slot in self.iter_slots():
            if slot.certain is None:
                return house, attr
        return None

    def is_complete(self) -> bool:
        return all(slot.certain is not None for slot in self._slots.values())

    def resolved_count(self) -> int:
        return sum(1 for slot in self._slots.values() if slot.certain is not None)

    def clone(self) -> "SlotStore":
        """Fully independent copy; nothing mutable is shared with ``self``."""
        other = SlotStore.__new__(SlotStore)
        other.num_houses = self.num_houses
        other.attributes = self.attributes
        other._slots = {key: slot.copy() for key, slot in self._slots.items()}
        return other

    def snapshot(self) -> Hashable:
        return tuple(
            (slot.certain, frozenset(slot.excluded)) for _, _, slot in self.iter_slots()
        )
