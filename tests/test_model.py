"""Unit tests for the slot store and puzzle configuration."""

import pytest

from src.zebra.errors import BoundsError, ConflictError
from src.zebra.model import NUMBER, PuzzleConfig, SlotStore


def _store(num_houses=3, *attrs):
    return SlotStore(num_houses, (NUMBER,) + (attrs or ("color",)))


def test_number_attribute_is_seeded_per_house():
    store = _store(3)
    for house in range(3):
        assert store.certain(house, NUMBER) == house
        assert store.excluded(house, NUMBER) == {v for v in range(3) if v != house}


def test_set_certain_excludes_other_values_and_other_houses():
    store = _store(3)
    assert store.set_certain(0, "color", 1)

    assert store.certain(0, "color") == 1
    assert store.excluded(0, "color") == {0, 2}
    assert store.excluded(1, "color") == {1}
    assert store.excluded(2, "color") == {1}


def test_set_certain_same_value_is_noop():
    store = _store(3)
    store.set_certain(0, "color", 1)
    assert not store.set_certain(0, "color", 1)
    assert store.certain(0, "color") == 1


def test_set_certain_different_value_conflicts():
    store = _store(3)
    store.set_certain(0, "color", 1)
    with pytest.raises(ConflictError):
        store.set_certain(0, "color", 2)


def test_set_certain_on_value_taken_by_other_house_conflicts():
    store = _store(3)
    store.set_certain(0, "color", 1)
    with pytest.raises(ConflictError):
        store.set_certain(2, "color", 1)


def test_exclude_is_idempotent():
    store = _store(3)
    assert store.exclude(1, "color", 2)
    assert not store.exclude(1, "color", 2)
    assert store.excluded(1, "color") == {2}


@pytest.mark.parametrize("house", [-1, 3])
def test_exclude_out_of_range_house_is_bounds_error(house):
    store = _store(3)
    with pytest.raises(BoundsError):
        store.exclude(house, "color", 0)


def test_set_certain_out_of_range_house_is_bounds_error():
    store = _store(3)
    with pytest.raises(BoundsError):
        store.set_certain(3, "color", 0)


def test_exclude_certain_value_conflicts():
    store = _store(3)
    store.set_certain(2, "color", 0)
    with pytest.raises(ConflictError):
        store.exclude(2, "color", 0)


def test_excluding_every_value_conflicts():
    store = _store(2)
    store.exclude(0, "color", 0)
    with pytest.raises(ConflictError):
        store.exclude(0, "color", 1)


def test_candidates_and_rules_out():
    store = _store(3)
    store.exclude(1, "color", 0)
    assert store.candidates(1, "color") == [1, 2]
    assert store.rules_out(1, "color", 0)
    assert not store.rules_out(1, "color", 1)

    store.set_certain(0, "color", 2)
    assert store.candidates(0, "color") == [2]
    assert store.rules_out(0, "color", 1)


def test_is_complete_and_first_unresolved():
    store = _store(2, "color", "pet")
    assert not store.is_complete()
    assert store.first_unresolved() == (0, "color")

    store.set_certain(0, "color", 0)
    store.set_certain(1, "color", 1)
    assert store.first_unresolved() == (0, "pet")

    store.set_certain(0, "pet", 1)
    store.set_certain(1, "pet", 0)
    assert store.is_complete()
    assert store.first_unresolved() is None


def test_clone_shares_no_state():
    store = _store(3)
    store.exclude(0, "color", 2)
    clone = store.clone()

    clone.set_certain(1, "color", 0)

    assert store.certain(1, "color") is None
    assert store.excluded(0, "color") == {2}
    assert clone.excluded(0, "color") == {0, 2}
    assert store.snapshot() != clone.snapshot()


def test_snapshot_tracks_content():
    store = _store(3)
    before = store.snapshot()
    assert store.clone().snapshot() == before
    store.exclude(0, "color", 1)
    assert store.snapshot() != before


def test_for_config_uses_number_then_configured_order():
    config = PuzzleConfig(
        num_houses=2,
        attributes=("pet", "color"),
        domains={"pet": ("cat", "dog"), "color": ("red", "blue")},
    )
    store = SlotStore.for_config(config)
    assert store.attributes == (NUMBER, "pet", "color")


def test_config_rejects_wrong_domain_size():
    with pytest.raises(ValueError):
        PuzzleConfig(num_houses=3, attributes=("color",), domains={"color": ("red", "blue")})


def test_config_rejects_duplicate_values():
    with pytest.raises(ValueError):
        PuzzleConfig(num_houses=2, attributes=("color",), domains={"color": ("red", "red")})


def test_config_rejects_reserved_number_attribute():
    with pytest.raises(ValueError):
        PuzzleConfig(num_houses=2, attributes=(NUMBER,), domains={NUMBER: ("0", "1")})


def test_config_rejects_non_positive_house_count():
    with pytest.raises(ValueError):
        PuzzleConfig(num_houses=0, attributes=(), domains={})


def test_display_value():
    config = PuzzleConfig(num_houses=2, attributes=("color",), domains={"color": ("red", "blue")})
    assert config.display_value("color", 1) == "blue"
    assert config.display_value(NUMBER, 1) == "1"
    assert config.display_value("color", None) == " "


def test_config_domains_are_read_only():
    domains = {"color": ["red", "blue"]}
    config = PuzzleConfig(num_houses=2, attributes=["color"], domains=domains)

    domains["color"].append("green")
    assert config.domains["color"] == ("red", "blue")
    assert config.attributes == ("color",)
    with pytest.raises(TypeError):
        config.domains["pet"] = ("cat", "dog")
