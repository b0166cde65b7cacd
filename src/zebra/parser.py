"""Constraint interpreter and puzzle-record parsing.

Constraint expressions use the form ``attribute/index OP attribute/index``:

- ``==``   both operands belong to the same house
- ``next`` the operands sit in adjacent houses, in either order
- ``+1``   the left operand's house is directly before the right operand's

Expressions that carry none of these operators (e.g. ``pet/0?``) are inert
annotations and are skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import ParseError
from .model import NUMBER, PuzzleConfig


class ConstraintKind(Enum):
    EQUAL = "=="
    NEXT = "next"
    OFFSET = "+1"


@dataclass(frozen=True)
class Operand:
    attribute: str
    value: int

    def __str__(self) -> str:
        return f"{self.attribute}/{self.value}"


@dataclass(frozen=True)
class Constraint:
    kind: ConstraintKind
    left: Operand
    right: Operand
    expression: str = ""

    @property
    def description(self) -> str:
        return self.expression or f"{self.left} {self.kind.value} {self.right}"


_OPERATOR_RE = re.compile(r"==|\bnext\b|\+1")
_CONSTRAINT_RE = re.compile(
    r"^\s*([A-Za-z_][\w-]*)/(\d+)\s+(==|next|\+1)\s+([A-Za-z_][\w-]*)/(\d+)\s*$"
)


def parse_constraint(expression: str) -> Optional[Constraint]:
    """Parse one expression. Returns None for inert annotations."""
    text = str(expression)
    if not _OPERATOR_RE.search(text):
        return None

    m = _CONSTRAINT_RE.match(text)
    if not m:
        raise ParseError(f"Cannot parse constraint: {text!r}")

    attr1, idx1, op, attr2, idx2 = m.groups()
    return Constraint(
        kind=ConstraintKind(op),
        left=Operand(attr1, int(idx1)),
        right=Operand(attr2, int(idx2)),
        expression=text.strip(),
    )


def _check_operand(operand: Operand, config: PuzzleConfig, expression: str) -> None:
    if operand.attribute != NUMBER and operand.attribute not in config.attributes:
        raise ParseError(f"Unknown attribute '{operand.attribute}' in {expression!r}")
    if operand.value >= config.num_houses:
        raise ParseError(
            f"Index {operand.value} out of range for '{operand.attribute}' in {expression!r}"
        )


def compile_constraints(config: PuzzleConfig) -> List[Constraint]:
    """Parse and validate every constraint of ``config``, dropping inert ones."""
    compiled: List[Constraint] = []
    for expression in config.constraints:
        constraint = parse_constraint(expression)
        if constraint is None:
            continue
        _check_operand(constraint.left, config, expression)
        _check_operand(constraint.right, config, expression)
        compiled.append(constraint)
    return compiled


def _coerce_list(value: Any) -> List[Any]:
    # pandas hands nested columns back as numpy arrays
    if hasattr(value, "tolist"):
        value = value.tolist()
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    raise ParseError(f"Expected a list of values, got {type(value).__name__}")


def _parse_house_count(record: Mapping[str, Any], domains: Mapping[str, Sequence[Any]]) -> int:
    houses = record.get("houses")
    if houses is not None:
        try:
            return int(houses)
        except (TypeError, ValueError):
            raise ParseError(f"Invalid house count: {houses!r}")

    size_str = record.get("size")
    if size_str:
        try:
            return int(str(size_str).split("*", 1)[0])
        except ValueError:
            raise ParseError(f"Invalid puzzle size: {size_str!r}")

    sizes = {len(values) for values in domains.values()}
    if len(sizes) == 1:
        return sizes.pop()
    raise ParseError("Puzzle record does not state its house count")


def _parse_domains(record: Mapping[str, Any]) -> Tuple[Tuple[str, ...], Dict[str, Tuple[str, ...]]]:
    raw_attrs = record.get("attributes")
    if raw_attrs is None:
        raise ParseError("Puzzle record has no 'attributes'")

    if isinstance(raw_attrs, Mapping):
        items: Iterable[Tuple[str, Any]] = raw_attrs.items()
    else:
        raw_domains = record.get("domains") or {}
        if not isinstance(raw_domains, Mapping):
            raise ParseError("'domains' must map attribute names to value lists")
        names = _coerce_list(raw_attrs)
        missing = [n for n in names if n != NUMBER and n not in raw_domains]
        if missing:
            raise ParseError(f"No domain given for: {', '.join(map(str, missing))}")
        items = [(n, raw_domains[n]) for n in names]

    attributes: List[str] = []
    domains: Dict[str, Tuple[str, ...]] = {}
    for name, values in items:
        name = str(name).strip()
        # The house position is implicit; an explicit "number" entry is ignored.
        if name == NUMBER:
            continue
        # Parquet struct columns fill absent keys with None.
        if values is None:
            continue
        attributes.append(name)
        domains[name] = tuple(str(v) for v in _coerce_list(values))
    return tuple(attributes), domains


def parse_puzzle(record: Mapping[str, Any]) -> PuzzleConfig:
    """Build a :class:`PuzzleConfig` from a raw puzzle dictionary.

    Accepted shapes::

        {"houses": 2, "attributes": {"color": ["red", "blue"]}, "constraints": [...]}
        {"size": "2*1", "attributes": ["color"], "domains": {"color": [...]}, "constraints": [...]}

    Constraint strings are parsed and validated here so a malformed puzzle is
    rejected at load time.
    """
    attributes, domains = _parse_domains(record)
    num_houses = _parse_house_count(record, domains)
    raw_constraints = record.get("constraints")
    if raw_constraints is None:
        raw_constraints = []
    constraints = tuple(str(c) for c in _coerce_list(raw_constraints))

    try:
        config = PuzzleConfig(
            num_houses=num_houses,
            attributes=attributes,
            domains=domains,
            constraints=constraints,
            puzzle_id=str(record.get("id", "unknown")),
        )
    except ValueError as exc:
        raise ParseError(str(exc)) from exc

    compile_constraints(config)
    return config
