"""
Beaver Circuit Representation Module

This module provides the building blocks for Boolean circuits evaluated with
Beaver multiplication over XOR-shared bits, and the round schedule the two
parties derive from a circuit.

Gate costs:
- XOR gates are evaluated locally without communication
- NOT gates are evaluated locally (only Party A flips its share)
- AND gates consume one dealer triple and two communication rounds
  (open d, then open e)

After all AND gates, one extra round carries the output share.
"""

from enum import Enum
from typing import Container, Dict, List, Optional, Set
from dataclasses import dataclass

from .beaver_errors import InvalidInput


class BeaverGateType(Enum):
    """Types of gates supported by the protocol."""

    AND = "AND"
    XOR = "XOR"
    NOT = "NOT"


@dataclass
class BeaverWire:
    """
    Represents a wire in the Boolean circuit.
    Each wire carries a bit that is XOR-shared between the two parties.
    """

    wire_id: str

    def __hash__(self):
        return hash(self.wire_id)

    def __eq__(self, other):
        return isinstance(other, BeaverWire) and self.wire_id == other.wire_id


@dataclass
class BeaverGate:
    """
    Represents a logic gate in the circuit.
    Gates take input wires and produce an output wire.
    """

    gate_id: str
    gate_type: BeaverGateType
    input_wires: List[BeaverWire]
    output_wire: BeaverWire

    def evaluate_plaintext(self, inputs: Dict[BeaverWire, int]) -> int:
        """Evaluate the gate given plaintext bits (for testing)."""
        if self.gate_type == BeaverGateType.AND:
            return inputs[self.input_wires[0]] & inputs[self.input_wires[1]]
        elif self.gate_type == BeaverGateType.XOR:
            return inputs[self.input_wires[0]] ^ inputs[self.input_wires[1]]
        elif self.gate_type == BeaverGateType.NOT:
            if len(self.input_wires) != 1:
                raise ValueError(
                    f"NOT gate must have exactly 1 input wire, got {len(self.input_wires)}"
                )
            return 1 ^ inputs[self.input_wires[0]]
        else:
            raise ValueError(f"Unknown gate type: {self.gate_type}")

    @property
    def is_local(self) -> bool:
        """XOR and NOT gates need no communication."""
        return self.gate_type != BeaverGateType.AND


@dataclass
class BeaverCircuit:
    """
    Represents a Boolean circuit for two-party Beaver evaluation.
    AND gates are evaluated in list order, one dealer triple each.
    """

    gates: List[BeaverGate]
    input_wires: List[BeaverWire]
    output_wires: List[BeaverWire]
    party_a_input_wires: List[BeaverWire]  # MSB first
    party_b_input_wires: List[BeaverWire]  # MSB first

    def evaluate_plaintext(
        self, inputs: Dict[BeaverWire, int]
    ) -> Dict[BeaverWire, int]:
        """
        Evaluate the entire circuit in plaintext.
        This is the reference the secure evaluation is checked against.
        """
        wire_values = dict(inputs)
        remaining = list(self.gates)

        while remaining:
            ready = [
                gate
                for gate in remaining
                if all(w in wire_values for w in gate.input_wires)
            ]
            if not ready:
                unprocessed = [g.gate_id for g in remaining]
                raise ValueError(f"Circuit evaluation stuck. Unprocessed gates: {unprocessed}")
            for gate in ready:
                wire_values[gate.output_wire] = gate.evaluate_plaintext(wire_values)
                remaining.remove(gate)

        return {w: wire_values[w] for w in self.output_wires}

    def evaluate_plaintext_ints(self, a_value: int, b_value: int) -> int:
        """Plaintext result for packed party inputs (single-output circuits)."""
        inputs = unpack_input(a_value, self.party_a_input_wires)
        inputs.update(unpack_input(b_value, self.party_b_input_wires))
        return self.evaluate_plaintext(inputs)[self.output_wires[0]]

    def get_and_gates(self) -> List[BeaverGate]:
        """Get all AND gates in evaluation order (these consume triples)."""
        return [gate for gate in self.gates if gate.gate_type == BeaverGateType.AND]

    def get_xor_gates(self) -> List[BeaverGate]:
        """Get all XOR gates in the circuit (these are free)."""
        return [gate for gate in self.gates if gate.gate_type == BeaverGateType.XOR]

    def get_not_gates(self) -> List[BeaverGate]:
        """Get all NOT gates in the circuit (these are also free)."""
        return [gate for gate in self.gates if gate.gate_type == BeaverGateType.NOT]

    def ready_local_gates(self, available: Container[BeaverWire]) -> List[BeaverGate]:
        """Local gates whose inputs are all in `available` and whose output is not."""
        return [
            gate
            for gate in self.gates
            if gate.is_local
            and gate.output_wire not in available
            and all(w in available for w in gate.input_wires)
        ]


# ================== INPUT PACKING ==================


def unpack_input(value: int, wires: List[BeaverWire]) -> Dict[BeaverWire, int]:
    """
    Split a packed integer into one bit per wire.

    The first wire receives the most significant bit. With the wires
    [a, b, r], bit2 goes to a, bit1 to b and bit0 to r.
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidInput(f"input must be an int, got {type(value).__name__}")
    width = len(wires)
    if value < 0 or value >= (1 << width):
        raise InvalidInput(f"input {value} does not fit in {width} bits")

    return {wire: (value >> (width - 1 - i)) & 1 for i, wire in enumerate(wires)}


def pack_inputs(bits: Dict[BeaverWire, int], wires: List[BeaverWire]) -> int:
    """Inverse of unpack_input."""
    value = 0
    for wire in wires:
        value = (value << 1) | (bits[wire] & 1)
    return value


# ================== ROUND SCHEDULE ==================


class StepKind(Enum):
    """What a party opens in a given round."""

    OPEN_D = "OPEN_D"  # first message of an AND gate: d = x XOR u
    OPEN_E = "OPEN_E"  # second message of an AND gate: e = y XOR v
    OUTPUT = "OUTPUT"  # output share exchange


@dataclass(frozen=True)
class RoundStep:
    """
    One entry of the round table.

    `gate` and `triple_index` are set for OPEN_D and OPEN_E rounds;
    for the OUTPUT round they are None.
    """

    round: int
    kind: StepKind
    gate: Optional[BeaverGate] = None
    triple_index: Optional[int] = None


def _computable_wires(circuit: BeaverCircuit, available: Set[BeaverWire]):
    ready = circuit.ready_local_gates(available)
    while ready:
        for gate in ready:
            available.add(gate.output_wire)
        ready = circuit.ready_local_gates(available)


def build_round_schedule(circuit: BeaverCircuit) -> List[RoundStep]:
    """
    Lay out the numbered rounds for a circuit.

    AND gate i (in list order) consumes triple i and occupies rounds 2i+1
    (open d) and 2i+2 (open e). The last round exchanges the output share.
    Raises ValueError when an AND gate needs a wire that cannot have been
    computed by the time its first round starts, or when some gate can
    never run because an operand is produced nowhere.
    """
    if len(circuit.output_wires) != 1:
        raise ValueError(
            f"circuit must have exactly one output wire, got {len(circuit.output_wires)}"
        )

    available: Set[BeaverWire] = set(circuit.input_wires)
    _computable_wires(circuit, available)

    schedule: List[RoundStep] = []
    for index, gate in enumerate(circuit.get_and_gates()):
        if len(gate.input_wires) != 2:
            raise ValueError("AND gate must have exactly 2 inputs")
        missing = [w.wire_id for w in gate.input_wires if w not in available]
        if missing:
            raise ValueError(
                f"AND gate {gate.gate_id} depends on wires not yet computed: {missing}"
            )
        schedule.append(RoundStep(2 * index + 1, StepKind.OPEN_D, gate, index))
        schedule.append(RoundStep(2 * index + 2, StepKind.OPEN_E, gate, index))
        available.add(gate.output_wire)
        _computable_wires(circuit, available)

    if circuit.output_wires[0] not in available:
        raise ValueError(
            f"output wire {circuit.output_wires[0].wire_id} is never computed"
        )

    stranded = [gate.gate_id for gate in circuit.gates if gate.output_wire not in available]
    if stranded:
        raise ValueError(f"gates with operands that are never produced: {stranded}")

    schedule.append(RoundStep(len(schedule) + 1, StepKind.OUTPUT))
    return schedule


# ================== CIRCUITS ==================


def create_disjointness_circuit() -> BeaverCircuit:
    """
    Create the 5-AND circuit over two 3-bit inputs (a, b, r):

        z1 = NOT(a_A AND a_B)
        z2 = NOT(b_A AND b_B)
        z3 = NOT(r_A AND r_B)
        output = (z1 AND z2) AND z3

    The output is 1 exactly when the two inputs have no set bit in common.
    """
    # Party A's 3-bit input
    alice_a = BeaverWire("alice_a")  # bit 2
    alice_b = BeaverWire("alice_b")  # bit 1
    alice_r = BeaverWire("alice_r")  # bit 0

    # Party B's 3-bit input
    bob_a = BeaverWire("bob_a")
    bob_b = BeaverWire("bob_b")
    bob_r = BeaverWire("bob_r")

    # First layer
    and_a = BeaverWire("and_a")
    and_b = BeaverWire("and_b")
    and_r = BeaverWire("and_r")
    z1 = BeaverWire("z1")
    z2 = BeaverWire("z2")
    z3 = BeaverWire("z3")

    # Second layer
    z12 = BeaverWire("z12")
    output = BeaverWire("output")

    gates = [
        BeaverGate("and_gate_a", BeaverGateType.AND, [alice_a, bob_a], and_a),
        BeaverGate("nand_gate_a", BeaverGateType.NOT, [and_a], z1),
        BeaverGate("and_gate_b", BeaverGateType.AND, [alice_b, bob_b], and_b),
        BeaverGate("nand_gate_b", BeaverGateType.NOT, [and_b], z2),
        BeaverGate("and_gate_r", BeaverGateType.AND, [alice_r, bob_r], and_r),
        BeaverGate("nand_gate_r", BeaverGateType.NOT, [and_r], z3),
        BeaverGate("and_gate_z12", BeaverGateType.AND, [z1, z2], z12),
        BeaverGate("and_gate_output", BeaverGateType.AND, [z12, z3], output),
    ]

    return BeaverCircuit(
        gates=gates,
        input_wires=[alice_a, alice_b, alice_r, bob_a, bob_b, bob_r],
        output_wires=[output],
        party_a_input_wires=[alice_a, alice_b, alice_r],
        party_b_input_wires=[bob_a, bob_b, bob_r],
    )
