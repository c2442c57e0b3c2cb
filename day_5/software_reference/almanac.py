"""
Seed Almanac - Input Parsing and Solver

Reads the almanac text format: a seeds line followed by a sequence of named
mapping blocks.

    seeds: 79 14 55 13

    seed-to-soil map:
    50 98 2
    52 50 48

Stage order is the textual order of the blocks.

Usage:
    python3 -m software_reference.almanac <input_file> [--verbose]
"""

import sys
from typing import List, Tuple

from software_reference.range_cascade import Interval, MappingStage, RangeCascade, Rule


class AlmanacParseError(ValueError):
    """Raised when the almanac text is malformed."""

    def __init__(self, line_number, message):
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number


def _parse_numbers(text, line_number):
    try:
        return [int(field) for field in text.split()]
    except ValueError:
        raise AlmanacParseError(line_number, f"non-numeric field in {text!r}") from None


def parse_almanac(text: str) -> Tuple[List[int], List[MappingStage]]:
    """
    Parse almanac text into seeds and mapping stages.

    Args:
        text: Full almanac contents

    Returns:
        tuple: (seeds, stages) where seeds is a list of integers and stages
               is a list of MappingStage in document order

    Raises:
        AlmanacParseError: on a missing seeds line, a rule outside a map
                           block, a rule with the wrong number of fields, or
                           a non-numeric field
    """
    seeds = None
    stages = []
    stage_name = None
    rules = []
    state = 0

    for line_number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue

        if state == 0:
            if not line.startswith("seeds:"):
                raise AlmanacParseError(line_number, "expected 'seeds:' line")
            seeds = _parse_numbers(line[len("seeds:"):], line_number)
            state = 1

        elif line.endswith("map:"):
            if stage_name is not None:
                stages.append(MappingStage(rules, name=stage_name))
            stage_name = line[:-len("map:")].strip()
            rules = []

        else:
            if stage_name is None:
                raise AlmanacParseError(line_number, "rule line before any map header")
            fields = _parse_numbers(line, line_number)
            if len(fields) != 3:
                raise AlmanacParseError(
                    line_number, f"expected 3 fields (destination source length), got {len(fields)}"
                )
            rules.append(Rule(*fields))

    if seeds is None:
        raise AlmanacParseError(1, "expected 'seeds:' line")

    if stage_name is not None:
        stages.append(MappingStage(rules, name=stage_name))

    return seeds, stages


def read_input(filename):
    """
    Read an almanac file.

    Args:
        filename: Path to input file

    Returns:
        tuple: (seeds, stages), see parse_almanac
    """
    with open(filename) as f:
        return parse_almanac(f.read())


def seed_ranges(seeds):
    """
    Pair a flat seed list into (start, length) intervals.

    Raises:
        ValueError: if the seed list has odd length
    """
    if len(seeds) % 2:
        raise ValueError(f"seed ranges need an even number of values, got {len(seeds)}")

    return [Interval.from_start_length(start, length)
            for start, length in zip(seeds[0::2], seeds[1::2])]


def lowest_location(seeds, stages):
    """
    Part one: lowest location over individual seed values.

    Returns:
        int or None: lowest location, None when there are no seeds
    """
    return RangeCascade(stages).lowest_scalar(seeds)


def lowest_location_for_ranges(seeds, stages):
    """
    Part two: lowest location when seeds are (start, length) pairs.

    Returns:
        int or None: lowest location, None when there are no seed ranges
    """
    return RangeCascade(stages).lowest_value(seed_ranges(seeds))


def _format_result(value):
    return "no seeds" if value is None else str(value)


def main():
    import argparse

    parser = argparse.ArgumentParser(
        description="Find the lowest location reachable from the almanac seeds"
    )
    parser.add_argument("input_file", help="Almanac input file")
    parser.add_argument("--verbose", action="store_true",
                        help="Print interval counts after every stage")
    args = parser.parse_args()

    try:
        seeds, stages = read_input(args.input_file)
    except (OSError, ValueError) as e:
        print(f"Error reading {args.input_file}: {e}", file=sys.stderr)
        sys.exit(1)

    cascade = RangeCascade(stages)

    if args.verbose:
        print(f"Loaded {len(seeds)} seeds and {len(cascade)} stages")

    print(f"Lowest location (seeds): {_format_result(cascade.lowest_scalar(seeds))}")

    # Part two needs (start, length) pairs
    try:
        ranges = seed_ranges(seeds)
    except ValueError as e:
        print(f"Error in seed ranges: {e}", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        for stage, working in cascade.iter_stages(ranges):
            total = sum(interval.length for interval in working)
            print(f"  {stage.name or 'stage'}: {len(working)} intervals, total length {total}")

    print(f"Lowest location (seed ranges): {_format_result(cascade.lowest_value(ranges))}")


if __name__ == "__main__":
    main()
