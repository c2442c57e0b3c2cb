"""
Tests for almanac parsing and the end-to-end solver on the published example.
"""

import os
import sys

import pytest

from software_reference.almanac import (
    AlmanacParseError,
    lowest_location,
    lowest_location_for_ranges,
    main,
    parse_almanac,
    read_input,
    seed_ranges,
)
from software_reference.range_cascade import Interval, RangeCascade, Rule


EXAMPLE_FILE = os.path.join(os.path.dirname(__file__), "..", "testcases", "example_input.txt")


@pytest.fixture
def example():
    return read_input(EXAMPLE_FILE)


def test_read_example(example):
    seeds, stages = example

    assert seeds == [79, 14, 55, 13]
    assert [stage.name for stage in stages] == [
        "seed-to-soil",
        "soil-to-fertilizer",
        "fertilizer-to-water",
        "water-to-light",
        "light-to-temperature",
        "temperature-to-humidity",
        "humidity-to-location",
    ]
    assert stages[0].rules == (Rule(50, 98, 2), Rule(52, 50, 48))


def test_two_stage_composition(example):
    _, stages = example
    cascade = RangeCascade(stages[:2])

    assert stages[0].convert_value(79) == 81
    assert cascade.convert_value(79) == 81


def test_seed_to_location_chain(example):
    _, stages = example
    cascade = RangeCascade(stages)

    # seed 79 -> soil 81 -> fertilizer 81 -> water 81 -> light 74
    #         -> temperature 78 -> humidity 78 -> location 82
    assert [cascade.convert_value(seed) for seed in (79, 14, 55, 13)] == [82, 43, 86, 35]


def test_part_one(example):
    seeds, stages = example
    assert lowest_location(seeds, stages) == 35


def test_part_two(example):
    seeds, stages = example
    assert lowest_location_for_ranges(seeds, stages) == 46


def test_part_two_length_conservation(example):
    seeds, stages = example
    ranges = seed_ranges(seeds)

    assert ranges == [Interval(79, 93), Interval(55, 68)]
    for _, working in RangeCascade(stages).iter_stages(ranges):
        assert sum(i.length for i in working) == 27


def test_no_seeds():
    seeds, stages = parse_almanac("seeds:\n\nseed-to-soil map:\n50 98 2\n")

    assert seeds == []
    assert lowest_location(seeds, stages) is None
    assert lowest_location_for_ranges(seeds, stages) is None


def test_empty_map_block():
    _, stages = parse_almanac("seeds: 1 2\n\na-to-b map:\n\nb-to-c map:\n5 1 1\n")

    assert [stage.name for stage in stages] == ["a-to-b", "b-to-c"]
    assert stages[0].rules == ()
    assert RangeCascade(stages).convert_value(1) == 5


def test_odd_seed_count():
    with pytest.raises(ValueError):
        seed_ranges([79, 14, 55])


@pytest.mark.parametrize("text, line_number", [
    ("", 1),
    ("soil: 1 2", 1),
    ("seeds: 1 x", 1),
    ("seeds: 1 2\n\n50 98 2", 3),
    ("seeds: 1 2\n\na-to-b map:\n50 98", 4),
    ("seeds: 1 2\n\na-to-b map:\n50 98 2 7", 4),
    ("seeds: 1 2\n\na-to-b map:\n50 ninety 2", 4),
])
def test_parse_errors(text, line_number):
    with pytest.raises(AlmanacParseError) as excinfo:
        parse_almanac(text)

    assert excinfo.value.line_number == line_number
    assert isinstance(excinfo.value, ValueError)


def test_cli(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["almanac", EXAMPLE_FILE, "--verbose"])
    main()

    out = capsys.readouterr().out
    assert "Lowest location (seeds): 35" in out
    assert "Lowest location (seed ranges): 46" in out
    assert "humidity-to-location:" in out


def test_cli_parse_error(tmp_path, monkeypatch, capsys):
    bad = tmp_path / "bad.txt"
    bad.write_text("seeds: 1 2\n\na-to-b map:\n1 2\n")
    monkeypatch.setattr(sys, "argv", ["almanac", str(bad)])

    with pytest.raises(SystemExit) as excinfo:
        main()

    assert excinfo.value.code == 1
    assert "line 4" in capsys.readouterr().err


def test_cli_odd_seed_count_still_solves_part_one(tmp_path, monkeypatch, capsys):
    odd = tmp_path / "odd.txt"
    odd.write_text("seeds: 79 14 55\n\nseed-to-soil map:\n50 98 2\n52 50 48\n")
    monkeypatch.setattr(sys, "argv", ["almanac", str(odd)])

    with pytest.raises(SystemExit) as excinfo:
        main()

    captured = capsys.readouterr()
    assert excinfo.value.code == 1
    assert "Lowest location (seeds): 14" in captured.out
    assert "seed ranges" not in captured.out
    assert "even number" in captured.err


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
