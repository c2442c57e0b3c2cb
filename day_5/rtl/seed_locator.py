"""
Seed Locator - Hardware RTL Implementation

Chains one MappingStage per almanac table to carry a seed all the way to its
location, and tracks the lowest location over a stream of seeds (part one).

System Architecture:
    seed_in -> stage 0 -> stage 1 -> ... -> stage N-1 -> location_out
                                                            |
                                           min register <---+

Components:
    1. MappingStage x N: rule register files with priority lookup
       - Rules routed to the stage picked by stage_sel
    2. Minimum tracker: one compare per accepted seed

Every seed is resolved in a single clock, so a stream of K seeds finishes in
K cycles after the rules are loaded.
"""

from amaranth import *
from rtl.mapping_stage import MappingStage


def check_operand_width(values, width):
    """
    Ensure every value fits in an unsigned datapath of the given width.

    Raises:
        OverflowError: if any value is negative or needs more than width bits
    """
    limit = 1 << width
    for value in values:
        if not 0 <= value < limit:
            raise OverflowError(f"value {value} does not fit in {width} bits")


class SeedLocator(Elaboratable):
    """
    Complete system: N chained mapping stages plus a running minimum.

    Ports:
        Input (rule loading):
            - stage_sel: Stage that receives the rule
            - dest_in, src_in, length_in: Rule fields
            - rule_valid_in: Write the rule into the selected stage
            - clear: Empty every stage and reset the minimum

        Input (seed stream):
            - seed_in: Seed value
            - seed_valid_in: seed_in holds a seed this cycle
            - seed_last_in: This is the last seed

        Output:
            - location_out: Location of seed_in (combinational)
            - min_location_out: Lowest location seen so far
            - has_result: At least one seed was accepted
            - done: The last seed was accepted
    """

    def __init__(self, num_stages=7, max_rules=64, width=64):
        self.num_stages = num_stages
        self.max_rules = max_rules
        self.width = width

        self.stages = [MappingStage(max_rules=max_rules, width=width)
                       for _ in range(num_stages)]

        # Rule loading interface
        self.stage_sel = Signal(range(num_stages))
        self.dest_in = Signal(width)
        self.src_in = Signal(width)
        self.length_in = Signal(width)
        self.rule_valid_in = Signal()
        self.clear = Signal()

        # Seed stream interface
        self.seed_in = Signal(width)
        self.seed_valid_in = Signal()
        self.seed_last_in = Signal()

        # Output interface
        self.location_out = Signal(width)
        self.min_location_out = Signal(width)
        self.has_result = Signal()
        self.done = Signal()

    def elaborate(self, platform):
        m = Module()

        for i, stage in enumerate(self.stages):
            m.submodules[f"stage_{i}"] = stage
            m.d.comb += [
                stage.dest_in.eq(self.dest_in),
                stage.src_in.eq(self.src_in),
                stage.length_in.eq(self.length_in),
                stage.rule_valid_in.eq(self.rule_valid_in & (self.stage_sel == i)),
                stage.clear.eq(self.clear),
            ]

        # Lookup chain
        value = self.seed_in
        for stage in self.stages:
            m.d.comb += stage.value_in.eq(value)
            value = stage.value_out
        m.d.comb += self.location_out.eq(value)

        # Minimum tracker
        with m.If(self.clear):
            m.d.sync += [
                self.has_result.eq(0),
                self.done.eq(0),
            ]
        with m.Elif(self.seed_valid_in & ~self.done):
            with m.If(~self.has_result | (self.location_out < self.min_location_out)):
                m.d.sync += [
                    self.min_location_out.eq(self.location_out),
                    self.has_result.eq(1),
                ]
            with m.If(self.seed_last_in):
                m.d.sync += self.done.eq(1)

        return m


if __name__ == "__main__":
    import sys
    from amaranth.back import verilog

    output_path = sys.argv[1] if len(sys.argv) > 1 else "seed_locator.v"

    top = SeedLocator(num_stages=7, max_rules=64, width=64)
    v = verilog.convert(top, name="top", ports=[
        # Rule loading interface
        top.stage_sel, top.dest_in, top.src_in, top.length_in, top.rule_valid_in, top.clear,
        # Seed stream interface
        top.seed_in, top.seed_valid_in, top.seed_last_in,
        # Output interface
        top.location_out, top.min_location_out, top.has_result, top.done,
    ])

    with open(output_path, "w") as f:
        f.write(v)
    print(f"Generated {output_path}")
