"""
Property-based tests for the range cascade using Hypothesis.

This module verifies the interval splitting algorithm against the scalar
lookup: mapping an interval must give exactly the values obtained by
converting each of its points one by one.
"""

from collections import Counter

import pytest
from hypothesis import given, strategies as st, settings
from hypothesis.strategies import lists, tuples, integers

from software_reference.range_cascade import Interval, MappingStage, RangeCascade, Rule


# Strategy for rules; lengths include 0 and rules may overlap
rule_strategy = tuples(
    integers(min_value=0, max_value=300),  # destination_start
    integers(min_value=0, max_value=300),  # source_start
    integers(min_value=0, max_value=40),   # length
)

stage_strategy = lists(rule_strategy, min_size=0, max_size=8).map(MappingStage)

cascade_strategy = lists(stage_strategy, min_size=1, max_size=4).map(RangeCascade)


@st.composite
def interval(draw):
    """Generate a half-open interval, possibly empty."""
    start = draw(integers(min_value=0, max_value=350))
    length = draw(integers(min_value=0, max_value=60))
    return Interval(start, start + length)


intervals_strategy = lists(interval(), min_size=0, max_size=5)


def total_length(intervals):
    return sum(i.length for i in intervals)


def expand(intervals):
    """Multiset of all integers covered by the intervals."""
    values = Counter()
    for i in intervals:
        values.update(range(i.start, i.end))
    return values


# Property 1: Every stage preserves the total length of the working set
@given(cascade_strategy, intervals_strategy)
@settings(max_examples=500)
def test_length_conservation(cascade, intervals):
    expected = total_length(i for i in intervals if not i.is_empty)
    for stage, working in cascade.iter_stages(intervals):
        assert total_length(working) == expected, \
            f"Length changed in {stage}: {total_length(working)} != {expected}"


# Property 2: Interval mapping agrees point by point with scalar conversion
@given(cascade_strategy, intervals_strategy)
@settings(max_examples=500)
def test_matches_scalar_conversion(cascade, intervals):
    mapped = cascade.map_intervals(intervals)

    expected = Counter()
    for i in intervals:
        expected.update(cascade.convert_value(v) for v in range(i.start, i.end))

    assert expand(mapped) == expected


# Property 3: Lowest value equals brute-force minimum
@given(cascade_strategy, intervals_strategy)
def test_lowest_value_brute_force(cascade, intervals):
    points = [v for i in intervals for v in range(i.start, i.end)]
    expected = min((cascade.convert_value(v) for v in points), default=None)

    assert cascade.lowest_value(intervals) == expected


# Property 4: Boundary points are strictly interior rule endpoints
@given(stage_strategy, interval())
def test_boundary_points_strictly_interior(stage, r):
    points = stage.boundary_points_within(r)

    endpoints = {p for rule in stage.rules if rule.length > 0
                 for p in (rule.source_start, rule.source_end)}
    for p in points:
        assert r.start < p < r.end
        assert p in endpoints


# Property 5: Boundary extraction is idempotent
@given(stage_strategy, interval())
def test_boundary_points_idempotent(stage, r):
    assert stage.boundary_points_within(r) == stage.boundary_points_within(r)


# Property 6: Pieces tile the interval with no zero-length piece
@given(stage_strategy, interval())
def test_split_tiles_interval(stage, r):
    pieces = stage.split_interval(r)

    if r.is_empty:
        assert pieces == []
        return

    assert pieces[0].start == r.start
    assert pieces[-1].end == r.end
    for a, b in zip(pieces, pieces[1:]):
        assert a.end == b.start
    assert all(not p.is_empty for p in pieces)


# Property 7: No piece straddles a rule boundary
@given(stage_strategy, interval())
def test_pieces_share_one_offset(stage, r):
    for piece in stage.split_interval(r):
        offsets = {stage.convert_value(v) - v for v in range(piece.start, piece.end)}
        assert len(offsets) == 1, f"{piece} mixes offsets {offsets}"


# Property 8: Empty stage is the identity
@given(intervals_strategy)
def test_identity_without_rules(intervals):
    cascade = RangeCascade([[]])
    non_empty = [i for i in intervals if not i.is_empty]

    assert cascade.map_intervals(intervals) == non_empty


# Property 9: map_intervals ends where iter_stages ends
@given(cascade_strategy, intervals_strategy)
def test_map_intervals_matches_last_stage(cascade, intervals):
    stages = list(cascade.iter_stages(iter(intervals)))

    assert stages[-1][1] == cascade.map_intervals(iter(intervals))


# Property 10: Zero-length rules never match
@given(integers(min_value=0, max_value=300), integers(min_value=0, max_value=300))
def test_zero_length_rule_inert(source, value):
    stage = MappingStage([(source + 1000, source, 0)])

    assert stage.convert_value(value) == value
    assert stage.boundary_points_within(Interval(0, 1000)) == set()


# Concrete test cases for edge cases
def test_single_rule_conversion():
    stage = MappingStage([(50, 98, 2)])

    assert stage.convert_value(98) == 50
    assert stage.convert_value(99) == 51
    assert stage.convert_value(97) == 97
    assert stage.convert_value(100) == 100


def test_split_at_rule_start():
    stage = MappingStage([(50, 98, 2)])

    assert stage.boundary_points_within(Interval(90, 100)) == {98}
    assert stage.map_interval(Interval(90, 100)) == [Interval(90, 98), Interval(50, 52)]


def test_touching_boundary_is_not_split():
    stage = MappingStage([(50, 98, 2)])

    assert stage.boundary_points_within(Interval(98, 100)) == set()
    assert stage.map_interval(Interval(98, 100)) == [Interval(50, 52)]
    assert stage.map_interval(Interval(100, 110)) == [Interval(100, 110)]


def test_overlapping_rules_first_match_wins():
    stage = MappingStage([(100, 0, 10), (200, 5, 10)])

    assert stage.convert_value(7) == 107
    assert stage.convert_value(12) == 207
    assert stage.map_interval(Interval(0, 15)) == [
        Interval(100, 105),
        Interval(105, 110),
        Interval(205, 210),
    ]


def test_rule_order_changes_overlap_result():
    stage = MappingStage([(200, 5, 10), (100, 0, 10)])

    assert stage.convert_value(7) == 202
    assert stage.convert_value(3) == 103


def test_empty_input_has_no_result():
    cascade = RangeCascade([[(50, 98, 2)]])

    assert cascade.lowest_value([]) is None
    assert cascade.lowest_scalar([]) is None
    assert cascade.lowest_value([Interval(5, 5)]) is None


def test_no_stages_returns_input():
    cascade = RangeCascade([])

    assert cascade.map_intervals([Interval(3, 9), Interval(4, 4)]) == [Interval(3, 9)]
    assert cascade.map_intervals(((3, 9), (4, 4))) == [Interval(3, 9)]
    assert list(cascade.iter_stages([Interval(3, 9)])) == []
    assert cascade.lowest_scalar([8, 4, 6]) == 4


def test_large_values():
    # Puzzle inputs reach ~10^10; Python integers do not wrap
    stage = MappingStage([(9_000_000_000, 3_000_000_000, 1_500_000_000)])
    r = Interval.from_start_length(2_999_999_990, 20)

    assert stage.map_interval(r) == [
        Interval(2_999_999_990, 3_000_000_000),
        Interval(9_000_000_000, 9_000_000_010),
    ]


def test_rule_accessors():
    rule = Rule(50, 98, 2)

    assert rule.source_end == 100
    assert rule.offset == -48
    assert rule.contains(98) and rule.contains(99)
    assert not rule.contains(100)


if __name__ == "__main__":
    # Run pytest
    pytest.main([__file__, "-v", "--tb=short"])
