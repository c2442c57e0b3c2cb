"""
MappingStage RTL testbench.

Loads rule tables into the hardware register file and compares every lookup
with the software reference MappingStage.convert_value.

Usage:
    python3 -m amaranth_benchs.rtl_mapping_stage_tests [test_file]

Default test file: testcases/example_input.txt
"""

import os
import sys

import pytest
from amaranth.sim import Simulator
from hypothesis import given, strategies as st, settings

from rtl.mapping_stage import MappingStage
from rtl.seed_locator import check_operand_width
from software_reference.almanac import read_input
from software_reference.range_cascade import MappingStage as SoftwareStage


def simulate_mapping_stage(rules, values, max_rules=8, width=64):
    """
    Load rules into the hardware stage and look up each value.

    Returns:
        tuple: (results, rule_count, full) where results is a list of
               (value_out, hit) pairs in the order of values
    """
    check_operand_width(values, width)
    check_operand_width((field for rule in rules for field in rule), width)
    check_operand_width((dest + length for dest, _, length in rules), width)

    dut = MappingStage(max_rules=max_rules, width=width)
    results = []
    status = {}

    async def testbench(ctx):
        # Load rules, one per clock
        for dest, src, length in rules:
            ctx.set(dut.dest_in, dest)
            ctx.set(dut.src_in, src)
            ctx.set(dut.length_in, length)
            ctx.set(dut.rule_valid_in, 1)
            await ctx.tick()
        ctx.set(dut.rule_valid_in, 0)

        status["rule_count"] = ctx.get(dut.rule_count)
        status["full"] = ctx.get(dut.full)

        # Lookups are combinational
        for value in values:
            ctx.set(dut.value_in, value)
            results.append((ctx.get(dut.value_out), ctx.get(dut.hit)))

    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(testbench)
    sim.run()

    return results, status["rule_count"], status["full"]


def test_single_rule():
    rules = [(50, 98, 2)]
    results, rule_count, full = simulate_mapping_stage(rules, [97, 98, 99, 100])

    assert rule_count == 1
    assert not full
    assert results == [(97, 0), (50, 1), (51, 1), (100, 0)]


def test_overlapping_rules_lowest_index_wins():
    rules = [(100, 0, 10), (200, 5, 10)]
    results, _, _ = simulate_mapping_stage(rules, [3, 7, 12, 15])

    assert [value for value, _ in results] == [103, 107, 207, 15]


def test_zero_length_rule_never_hits():
    results, _, _ = simulate_mapping_stage([(500, 10, 0)], [9, 10, 11])

    assert results == [(9, 0), (10, 0), (11, 0)]


def test_full_table_ignores_extra_rules():
    rules = [(100, 0, 5), (200, 5, 5), (300, 10, 5)]
    results, rule_count, full = simulate_mapping_stage(rules, [2, 7, 12], max_rules=2)

    assert rule_count == 2
    assert full
    assert results == [(102, 1), (202, 1), (12, 0)]


def test_clear_empties_table():
    dut = MappingStage(max_rules=4, width=32)
    observed = []

    async def testbench(ctx):
        ctx.set(dut.dest_in, 50)
        ctx.set(dut.src_in, 98)
        ctx.set(dut.length_in, 2)
        ctx.set(dut.rule_valid_in, 1)
        await ctx.tick()
        ctx.set(dut.rule_valid_in, 0)

        ctx.set(dut.value_in, 98)
        observed.append(ctx.get(dut.value_out))

        ctx.set(dut.clear, 1)
        await ctx.tick()
        ctx.set(dut.clear, 0)

        observed.append(ctx.get(dut.rule_count))
        observed.append(ctx.get(dut.value_out))

    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(testbench)
    sim.run()

    assert observed == [50, 0, 98]


def test_large_values():
    rules = [(9_000_000_000, 3_000_000_000, 1_500_000_000)]
    values = [2_999_999_999, 3_000_000_000, 4_499_999_999, 4_500_000_000]
    results, _, _ = simulate_mapping_stage(rules, values)

    assert [value for value, _ in results] == [
        2_999_999_999, 9_000_000_000, 10_499_999_999, 4_500_000_000,
    ]


def test_operand_width_overflow():
    with pytest.raises(OverflowError):
        simulate_mapping_stage([(250, 0, 10)], [5], width=8)


rule_strategy = st.tuples(
    st.integers(min_value=0, max_value=200),  # destination_start
    st.integers(min_value=0, max_value=200),  # source_start
    st.integers(min_value=0, max_value=30),   # length
)


@given(st.lists(rule_strategy, min_size=0, max_size=6),
       st.lists(st.integers(min_value=0, max_value=255), min_size=1, max_size=16))
@settings(max_examples=30, deadline=None)
def test_matches_software_property(rules, values):
    """
    Property: Hardware lookup equals software convert_value for any table,
    including overlapping and zero-length rules.
    """
    reference = SoftwareStage(rules)
    results, _, _ = simulate_mapping_stage(rules, values, max_rules=6, width=16)

    assert [value for value, _ in results] == [reference.convert_value(v) for v in values]


def test_example_stages(test_file="testcases/example_input.txt"):
    """Compare every example stage against software over a window of values."""
    if not os.path.exists(test_file):
        test_file = os.path.join(os.path.dirname(__file__), "..", test_file)

    _, stages = read_input(test_file)
    values = list(range(0, 110))

    for stage in stages:
        results, _, _ = simulate_mapping_stage(stage.rules, values, max_rules=8)
        hw = [value for value, _ in results]
        sw = [stage.convert_value(v) for v in values]
        print(f"    {stage.name}: {'[OK]' if hw == sw else '[BAD]'}")
        assert hw == sw, f"{stage.name} mismatch"


if __name__ == "__main__":
    test_file = "testcases/example_input.txt"
    if len(sys.argv) > 1:
        test_file = sys.argv[1]

    print("=" * 80)
    print("Amaranth HDL Mapping Stage Verification Suite")
    print("=" * 80)

    test_example_stages(test_file)

    print("\n  [OK] ALL STAGES MATCH SOFTWARE REFERENCE!")
