"""
Mapping Stage Hardware Implementation using Amaranth HDL

Holds one almanac mapping table (e.g. seed-to-soil) in a register file and
converts a value through it in a single combinational step.

Architecture:
- Rule loading: one (destination, source, length) rule per clock while
  rule_valid_in is high, written to the next free slot
- Lookup: every slot compares value_in against its source interval in
  parallel; a priority chain selects the lowest-index hit
- Output: value_in + (destination - source) of the selected rule, or
  value_in unchanged when no rule covers it
"""

from amaranth import *


class MappingStage(Elaboratable):
    """
    Hardware module that maps a value through one table of rules.

    Ports:
        Input (rule loading):
            - dest_in: Rule destination start
            - src_in: Rule source start
            - length_in: Rule length
            - rule_valid_in: Write the rule into the next free slot
            - clear: Empty the table

        Input (lookup):
            - value_in: Value to convert

        Output:
            - value_out: Converted value (combinational)
            - hit: A rule covered value_in
            - hit_index: Slot of the rule that decided value_out
            - rule_count: Number of loaded rules
            - full: Table is full, further rules are ignored
    """

    def __init__(self, max_rules=64, width=64):
        """
        Initialize the Mapping Stage module.

        Args:
            max_rules: Number of rule slots (default: 64)
            width: Bit width for values (default: 64)
        """
        self.max_rules = max_rules
        self.width = width

        # Rule loading interface
        self.dest_in = Signal(width)
        self.src_in = Signal(width)
        self.length_in = Signal(width)
        self.rule_valid_in = Signal()
        self.clear = Signal()

        # Lookup interface
        self.value_in = Signal(width)
        self.value_out = Signal(width)
        self.hit = Signal()
        self.hit_index = Signal(range(max_rules))

        # Status
        self.rule_count = Signal(range(max_rules + 1))
        self.full = Signal()

        # Rule slots
        self.dests = [Signal(width, name=f"dest_{i}") for i in range(max_rules)]
        self.srcs = [Signal(width, name=f"src_{i}") for i in range(max_rules)]
        self.lengths = [Signal(width, name=f"length_{i}") for i in range(max_rules)]

    def elaborate(self, platform):
        m = Module()

        dests, srcs, lengths = self.dests, self.srcs, self.lengths

        m.d.comb += self.full.eq(self.rule_count == self.max_rules)

        # Rule loading
        with m.If(self.clear):
            m.d.sync += self.rule_count.eq(0)
        with m.Elif(self.rule_valid_in & ~self.full):
            for i in range(self.max_rules):
                with m.If(self.rule_count == i):
                    m.d.sync += [
                        dests[i].eq(self.dest_in),
                        srcs[i].eq(self.src_in),
                        lengths[i].eq(self.length_in),
                    ]
            m.d.sync += self.rule_count.eq(self.rule_count + 1)

        # Lookup: identity unless a rule covers the value
        m.d.comb += [
            self.value_out.eq(self.value_in),
            self.hit.eq(0),
            self.hit_index.eq(0),
        ]

        # Walk slots from last to first; the last assignment wins, so the
        # lowest-index covering rule decides the output.
        for i in reversed(range(self.max_rules)):
            # src + length is one bit wider than width, no wrap on the end bound
            inside = ((self.rule_count > i) &
                      (self.value_in >= srcs[i]) &
                      (self.value_in < srcs[i] + lengths[i]))
            with m.If(inside):
                m.d.comb += [
                    self.value_out.eq(self.value_in - srcs[i] + dests[i]),
                    self.hit.eq(1),
                    self.hit_index.eq(i),
                ]

        return m


if __name__ == "__main__":
    import sys
    from amaranth.back import verilog

    output_path = sys.argv[1] if len(sys.argv) > 1 else "mapping_stage.v"

    top = MappingStage(max_rules=64, width=64)
    v = verilog.convert(top, name="top", ports=[
        # Rule loading interface
        top.dest_in, top.src_in, top.length_in, top.rule_valid_in, top.clear,
        # Lookup interface
        top.value_in, top.value_out, top.hit, top.hit_index,
        # Status
        top.rule_count, top.full,
    ])

    with open(output_path, "w") as f:
        f.write(v)
    print(f"Generated {output_path}")
