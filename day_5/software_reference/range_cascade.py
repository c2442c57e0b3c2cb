"""
Seed Almanac - Range Cascade Software Reference

Pushes seed values and seed intervals through a chain of mapping stages
(seed-to-soil, soil-to-fertilizer, ..., humidity-to-location).

Each stage is a table of rules. A rule maps the half-open source interval
[source_start, source_start + length) onto [destination_start, ...) by a
constant offset. Values covered by no rule pass through unchanged. When rules
overlap, the first rule in table order wins.

Algorithm (intervals):
    1. For every working interval, collect the rule endpoints that fall
       strictly inside it, plus its own start and end
    2. Sort the points; consecutive pairs are pieces that lie entirely
       inside or entirely outside every rule of the stage
    3. Map each piece by looking up its start (one offset per piece) and
       keep its length
    4. The mapped pieces are the working set for the next stage

Time Complexity: O(S * I * R log R) where S is the number of stages, I the
number of working intervals and R the rules per stage, independent of the
interval sizes.
"""

from typing import Iterable, Iterator, List, NamedTuple, Optional, Set, Tuple


class Rule(NamedTuple):
    """One constant-offset mapping: destination, source, length."""

    destination_start: int
    source_start: int
    length: int

    @property
    def source_end(self) -> int:
        return self.source_start + self.length

    @property
    def offset(self) -> int:
        return self.destination_start - self.source_start

    def contains(self, value: int) -> bool:
        return self.source_start <= value < self.source_end


class Interval(NamedTuple):
    """Half-open integer interval [start, end)."""

    start: int
    end: int

    @classmethod
    def from_start_length(cls, start: int, length: int) -> "Interval":
        return cls(start, start + length)

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start


class MappingStage:
    """
    One table of mapping rules.

    Rules are kept in the order given; the table is never sorted so that
    overlapping rules resolve first-match-wins.
    """

    def __init__(self, rules: Iterable[Tuple[int, int, int]], name: Optional[str] = None):
        self.name = name
        self.rules = tuple(Rule(*rule) for rule in rules)

    def __repr__(self):
        return f"MappingStage(name={self.name!r}, rules={len(self.rules)})"

    def convert_value(self, value: int) -> int:
        """Map a single value through the first rule that contains it."""
        for rule in self.rules:
            if rule.contains(value):
                return value + rule.offset
        return value

    def boundary_points_within(self, interval: Interval) -> Set[int]:
        """
        Rule endpoints lying strictly inside interval.

        The interval's own start and end are not included. Zero-length rules
        contribute nothing.
        """
        points = set()
        for rule in self.rules:
            if rule.length <= 0:
                continue
            for point in (rule.source_start, rule.source_end):
                if interval.start < point < interval.end:
                    points.add(point)
        return points

    def split_interval(self, interval: Interval) -> List[Interval]:
        """Cut interval at every interior rule boundary."""
        points = sorted(self.boundary_points_within(interval) | {interval.start, interval.end})
        return [Interval(lo, hi) for lo, hi in zip(points, points[1:])]

    def map_interval(self, interval: Interval) -> List[Interval]:
        """
        Map an interval through this stage.

        Every piece from split_interval shares one offset, so looking up its
        start is enough.
        """
        mapped = []
        for piece in self.split_interval(interval):
            start = self.convert_value(piece.start)
            mapped.append(Interval(start, start + piece.length))
        return mapped


def _non_empty(intervals):
    """Materialize intervals, dropping zero-length ones."""
    return [interval for interval in map(Interval._make, intervals) if not interval.is_empty]


def _apply_stage(stage, intervals):
    mapped = []
    for interval in intervals:
        mapped.extend(stage.map_interval(interval))
    return mapped


class RangeCascade:
    """Ordered chain of mapping stages."""

    def __init__(self, stages):
        self.stages = tuple(
            stage if isinstance(stage, MappingStage) else MappingStage(stage)
            for stage in stages
        )

    def __len__(self):
        return len(self.stages)

    def convert_value(self, value: int) -> int:
        """Carry a single value through every stage."""
        for stage in self.stages:
            value = stage.convert_value(value)
        return value

    def iter_stages(self, intervals: Iterable[Interval]) -> Iterator[Tuple[MappingStage, List[Interval]]]:
        """
        Yield (stage, working_set) after each stage is applied.

        Zero-length input intervals are dropped before the first stage.
        """
        working = _non_empty(intervals)
        for stage in self.stages:
            working = _apply_stage(stage, working)
            yield stage, working

    def map_intervals(self, intervals: Iterable[Interval]) -> List[Interval]:
        """Carry intervals through every stage and return the final pieces."""
        working = _non_empty(intervals)
        for stage in self.stages:
            working = _apply_stage(stage, working)
        return working

    def lowest_value(self, intervals: Iterable[Interval]) -> Optional[int]:
        """
        Lowest value reachable from any of the intervals.

        Returns:
            The minimum start over all output pieces, or None when there is
            nothing to map
        """
        mapped = self.map_intervals(intervals)
        if not mapped:
            return None
        return min(interval.start for interval in mapped)

    def lowest_scalar(self, values: Iterable[int]) -> Optional[int]:
        """Lowest mapped value over individual values (unit intervals)."""
        return self.lowest_value(Interval(value, value + 1) for value in values)
