import pathlib
import sys

import pytest

# Ensure src package is on path
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from showcase_seating.errors import ConfigurationError
from showcase_seating.models import Person, StudioPair
from showcase_seating.units import build_units, coordination_groups, split_sizes


def make_people(*studios):
    """``make_people(("A", 12), ("B", 5))`` in studio then name order."""
    people = []
    for studio, count in studios:
        for i in range(count):
            people.append(Person(id=f"{studio}{i:02d}", name=f"{studio} {i:02d}", studio_id=studio, studio_name=studio))
    return people


def test_split_sizes_are_balanced():
    assert split_sizes(12, 10) == [6, 6]
    assert split_sizes(25, 10) == [9, 8, 8]
    assert split_sizes(20, 10) == [10, 10]
    assert split_sizes(11, 10) == [6, 5]


def test_split_property_holds_for_many_sizes():
    for capacity in range(1, 13):
        for count in range(capacity + 1, 45):
            units = build_units(make_people(("A", count)), capacity)
            sizes = [u.size for u in units]
            assert len(units) == -(-count // capacity)
            assert max(sizes) - min(sizes) <= 1
            assert max(sizes) <= capacity
            assert all(u.is_split_fragment for u in units)
            assert all(u.origin == "A" for u in units)


def test_example_scenario_units():
    units = build_units(make_people(("A", 12), ("B", 5), ("C", 3)), 10)
    fragments = [u for u in units if u.is_split_fragment]
    merged = [u for u in units if u.is_merged]

    assert [u.size for u in fragments] == [6, 6]
    assert len(merged) == 1
    assert merged[0].size == 8
    assert merged[0].affiliation_ids == ("B", "C")
    assert len(units) == 3
    assert [u.index for u in units] == [0, 1, 2]


def test_every_person_in_exactly_one_unit():
    people = make_people(("A", 23), ("B", 4), ("C", 7), ("D", 1), ("E", 10), ("F", 2))
    units = build_units(people, 8)
    seated = [p.id for u in units for p in u.people]
    assert sorted(seated) == sorted(p.id for p in people)
    assert all(u.size <= 8 for u in units)


def test_fitting_studio_is_never_split():
    units = build_units(make_people(("A", 10), ("B", 9), ("C", 1)), 10)
    for studio in ("A", "B", "C"):
        holding = [u for u in units if studio in u.affiliation_ids]
        assert len(holding) == 1


def test_build_is_deterministic():
    people = make_people(("A", 17), ("B", 3), ("C", 3), ("D", 4), ("E", 2))
    assert build_units(people, 6) == build_units(people, 6)


def test_empty_people_returns_no_units():
    assert build_units([], 10) == []


@pytest.mark.parametrize("capacity", [0, -3, True, False, 2.5])
def test_invalid_capacity_is_rejected(capacity):
    with pytest.raises(ConfigurationError):
        build_units(make_people(("A", 2)), capacity)


def test_unknown_merge_strategy_is_rejected():
    with pytest.raises(ConfigurationError):
        build_units(make_people(("A", 2)), 10, merge="best_effort")


def test_unknown_split_mode_is_rejected():
    with pytest.raises(ConfigurationError):
        build_units(make_people(("A", 2)), 10, split="tight")


class TestPackedSplit:
    """Packed mode fills units to capacity."""

    def test_large_studio_fills_tables(self):
        units = build_units(make_people(("A", 25)), 10, split="packed")
        assert [u.size for u in units] == [10, 10, 5]
        assert all(u.is_split_fragment and u.origin == "A" for u in units)

    def test_stragglers_join_a_unit_with_room(self):
        units = build_units(make_people(("A", 12), ("B", 5), ("C", 3)), 10, split="packed")
        assert sorted(u.size for u in units) == [5, 5, 10]
        joined = [u for u in units if u.affiliation_ids == ("C", "A")]
        assert len(joined) == 1
        assert joined[0].is_split_fragment
        assert joined[0].origin == "C"

    def test_straggler_with_no_room_stays(self):
        units = build_units(make_people(("A", 21)), 10, split="packed")
        assert [u.size for u in units] == [10, 10, 1]

    def test_isolated_studio_keeps_its_own_units(self):
        units = build_units(make_people(("0", 11), ("B", 4)), 10, isolated=["0"], split="packed")
        staff = [u for u in units if "0" in u.affiliation_ids]
        assert sorted(u.size for u in staff) == [1, 10]
        assert all(u.affiliation_ids == ("0",) for u in staff)

    def test_every_person_kept(self):
        people = make_people(("A", 23), ("B", 4), ("C", 7), ("D", 1), ("E", 10), ("F", 2))
        pairs = [StudioPair("B", "C")]
        units = build_units(people, 8, pairs=pairs, split="packed")
        seated = [p.id for u in units for p in u.people]
        assert sorted(seated) == sorted(p.id for p in people)
        assert all(u.size <= 8 for u in units)


def test_merge_strategies():
    people = make_people(("A", 3), ("B", 3), ("C", 3))

    first_fit = build_units(people, 10)
    assert [u.size for u in first_fit] == [9]
    assert first_fit[0].affiliation_ids == ("A", "B", "C")

    pairwise = build_units(people, 10, merge="pairwise")
    assert sorted(u.size for u in pairwise) == [3, 6]

    unmerged = build_units(people, 10, merge="none")
    assert [u.size for u in unmerged] == [3, 3, 3]
    assert not any(u.is_merged for u in unmerged)


def test_first_fit_takes_largest_units_first():
    units = build_units(make_people(("A", 2), ("B", 7), ("C", 4), ("D", 3)), 10)
    merged = sorted((u for u in units), key=lambda u: -u.size)
    assert merged[0].affiliation_ids == ("B", "D")
    assert merged[0].size == 10
    assert merged[1].affiliation_ids == ("C", "A")
    assert merged[1].size == 6


def test_split_fragments_and_full_units_are_not_merged():
    units = build_units(make_people(("A", 13), ("B", 10), ("C", 2)), 10)
    assert not any(u.is_merged for u in units)
    assert sorted(u.size for u in units) == [2, 6, 7, 10]


def test_paired_studios_sit_together():
    pairs = [StudioPair("A", "C")]
    units = build_units(make_people(("A", 3), ("B", 6), ("C", 4)), 10, pairs=pairs, merge="none")
    paired = [u for u in units if "A" in u.affiliation_ids]
    assert len(paired) == 1
    assert paired[0].affiliation_ids == ("A", "C")
    assert paired[0].origin == "A+C"
    assert paired[0].size == 7


def test_oversized_pairing_keeps_studios_whole():
    pairs = [StudioPair("A", "B")]
    units = build_units(make_people(("A", 6), ("B", 8)), 10, pairs=pairs)
    assert [(u.affiliation_ids, u.size) for u in units] == [(("B",), 8), (("A",), 6)]
    assert not any(u.is_split_fragment for u in units)


def test_small_partner_does_not_cut_a_fitting_studio():
    pairs = [StudioPair("A", "B")]
    units = build_units(make_people(("A", 3), ("B", 9)), 10, pairs=pairs)
    holding_b = [u for u in units if "B" in u.affiliation_ids]
    assert len(holding_b) == 1
    assert holding_b[0].size == 9
    assert not any(u.is_split_fragment for u in units)


def test_partners_share_a_unit_where_room_allows():
    pairs = [StudioPair("A", "B"), StudioPair("B", "C")]
    units = build_units(make_people(("A", 3), ("B", 4), ("C", 9)), 10, pairs=pairs, merge="none")
    assert [(u.affiliation_ids, u.size) for u in units] == [(("C",), 9), (("B", "A"), 7)]
    assert units[1].origin == "A+B+C"
    assert not units[1].is_merged


def test_oversized_studio_in_pairing_splits_on_its_own():
    pairs = [StudioPair("A", "B")]
    units = build_units(make_people(("A", 3), ("B", 14)), 10, pairs=pairs, merge="none")
    fragments = [u for u in units if u.is_split_fragment]
    assert [(u.affiliation_ids, u.size, u.origin) for u in fragments] == [(("B",), 7, "B"), (("B",), 7, "B")]
    assert [u.affiliation_ids for u in units if not u.is_split_fragment] == [("A",)]


def test_coordination_groups_are_transitive():
    keys = coordination_groups([StudioPair("2", "5"), StudioPair("5", "4"), StudioPair("1", "3")])
    assert keys == {"2": "2+4+5", "4": "2+4+5", "5": "2+4+5", "1": "1+3", "3": "1+3"}


def test_isolated_studio_is_not_merged_or_paired():
    pairs = [StudioPair("0", "B")]
    units = build_units(make_people(("0", 3), ("B", 4), ("C", 2)), 10, pairs=pairs, isolated=["0"])
    staff = [u for u in units if "0" in u.affiliation_ids]
    assert len(staff) == 1
    assert staff[0].affiliation_ids == ("0",)
    assert not staff[0].is_merged
    others = [u for u in units if u is not staff[0]]
    assert [u.affiliation_ids for u in others] == [("B", "C")]
