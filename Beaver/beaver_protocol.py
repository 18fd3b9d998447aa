"""
Beaver Protocol Implementation

This module implements two-party secure circuit evaluation with dealer
triples (Beaver's multiplication technique). The protocol works by:
1. The dealer handing each party its halves of one triple per AND gate
2. Each party XOR-sharing its private input bits and sending the peer halves
3. Evaluating XOR and NOT gates locally (NOT: only Party A flips its share)
4. Evaluating each AND gate in two rounds: open d = x ⊕ u, then open e = y ⊕ v
5. Exchanging output shares in a final round

Round convention:
Party A speaks first in every round. A increments its round counter when it
sends and files the reply under that same round. B files an incoming bit
under the round about to start (counter + 1) and only increments its counter
when it sends its reply. The calls must alternate
A.send -> B.receive -> B.send -> A.receive, once per round.
"""

import logging
import time
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .beaver_circuit import (
    BeaverCircuit,
    BeaverGateType,
    BeaverWire,
    RoundStep,
    StepKind,
    build_round_schedule,
    create_disjointness_circuit,
    unpack_input,
)
from .beaver_dealer import RandomnessTriple, TrustedDealer
from .beaver_errors import (
    AlreadyInitialized,
    NotInitialized,
    OutOfSequence,
    OutputNotReady,
    ProtocolExhausted,
    TripleReused,
)
from .beaver_random import BitSource, default_bit_source
from .beaver_shares import BeaverShareManager, PartyRole, SecretSharingPair, check_bit

logger = logging.getLogger(__name__)


class Disclosure(Enum):
    """Who learns the output in the last round."""

    A_ONLY = "A_ONLY"  # B sends its share, A's message is a 0 filler
    BOTH = "BOTH"  # both parties send their shares and both reconstruct


class BeaverParty:
    """
    State shared by both protocol roles.

    Holds this party's input shares, the cached peer shares of the peer's
    inputs, its dealer triples, the masking pairs d and e, the output pair
    and the round counter.
    """

    role: PartyRole = None

    def __init__(
        self,
        circuit: Optional[BeaverCircuit] = None,
        disclosure: Disclosure = Disclosure.A_ONLY,
        bit_source: Optional[BitSource] = None,
    ):
        self.circuit = circuit or create_disjointness_circuit()
        self.schedule: List[RoundStep] = build_round_schedule(self.circuit)
        self.disclosure = disclosure
        self.bit_source = bit_source or default_bit_source()

        self.share_manager = BeaverShareManager(self.role)
        self.inputs: Optional[Dict[BeaverWire, SecretSharingPair]] = None
        self.triples: Optional[List[RandomnessTriple]] = None
        self.consumed_triples = set()
        self.peer_shares_received = False

        self.d = SecretSharingPair()
        self.e = SecretSharingPair()
        self.output_pair = SecretSharingPair()
        self._has_output = False

        self.current_round = 0
        self._received_round = 0

    # ---------------- setup ----------------

    @property
    def own_input_wires(self) -> List[BeaverWire]:
        if self.role is PartyRole.A:
            return self.circuit.party_a_input_wires
        return self.circuit.party_b_input_wires

    @property
    def peer_input_wires(self) -> List[BeaverWire]:
        if self.role is PartyRole.A:
            return self.circuit.party_b_input_wires
        return self.circuit.party_a_input_wires

    @property
    def last_round(self) -> int:
        return len(self.schedule)

    def init(self, value: int, triples: Sequence[RandomnessTriple]):
        """
        Set this party's private input and its dealer triples.

        `value` packs one bit per input wire, most significant bit first
        (for the default circuit: bit2 = a, bit1 = b, bit0 = r). A party runs
        the protocol once; a new run needs new party objects.
        """
        if self.inputs is not None:
            raise AlreadyInitialized(f"Party {self.role.value} is already initialized")
        bits = unpack_input(value, self.own_input_wires)
        triples = list(triples)
        and_gates = len(self.circuit.get_and_gates())
        if len(triples) != and_gates:
            raise ValueError(
                f"expected {and_gates} triples (one per AND gate), got {len(triples)}"
            )

        self.inputs = {
            wire: SecretSharingPair.new(bit, self.bit_source) for wire, bit in bits.items()
        }
        self.share_manager.set_input_shares(
            {wire: pair.get(self.role) for wire, pair in self.inputs.items()}
        )
        self.triples = triples
        logger.debug("[Party %s] Input shares created for %d wires", self.role.value, len(bits))

    def send_input_share(self) -> Tuple[int, ...]:
        """The peer's halves of this party's input bits, in wire order."""
        self._require_init()
        return tuple(self.inputs[wire].get(self.role.peer) for wire in self.own_input_wires)

    def receive_input_share(self, shares: Sequence[int]):
        """Cache the peer's halves of the peer's own input bits."""
        self._require_init()
        shares = tuple(shares)
        if len(shares) != len(self.peer_input_wires):
            raise ValueError(
                f"expected {len(self.peer_input_wires)} input shares, got {len(shares)}"
            )

        self.share_manager.set_input_shares(dict(zip(self.peer_input_wires, shares)))
        self.peer_shares_received = True
        logger.debug("[Party %s] Received peer input shares: %s", self.role.value, shares)

        # NOT/XOR gates placed directly on input wires
        self._evaluate_local_gates()

    def _require_init(self):
        if self.inputs is None:
            raise NotInitialized(f"Party {self.role.value} used before init()")

    def _require_ready(self):
        self._require_init()
        if not self.peer_shares_received:
            raise NotInitialized(
                f"Party {self.role.value} has not received the peer's input shares"
            )

    # ---------------- gate evaluation ----------------

    def _step(self, round_number: int) -> RoundStep:
        if round_number > self.last_round:
            raise ProtocolExhausted(
                f"Party {self.role.value}: round {round_number} is past the last round {self.last_round}"
            )
        return self.schedule[round_number - 1]

    def _unused_triple(self, index: int) -> RandomnessTriple:
        if index in self.consumed_triples:
            raise TripleReused(f"triple {index} has already been consumed")
        return self.triples[index]

    def _evaluate_local_gates(self):
        """Evaluate every XOR/NOT gate whose inputs are now available."""
        ready = self.circuit.ready_local_gates(self.share_manager)
        while ready:
            for gate in ready:
                if gate.gate_type == BeaverGateType.XOR:
                    self.share_manager.evaluate_xor_gate(gate.input_wires, gate.output_wire)
                elif gate.gate_type == BeaverGateType.NOT:
                    self.share_manager.evaluate_not_gate(gate.input_wires[0], gate.output_wire)
            ready = self.circuit.ready_local_gates(self.share_manager)

    def _open_d(self, step: RoundStep) -> int:
        """First message of an AND gate: mask both operands, open d."""
        triple = self._unused_triple(step.triple_index)
        d_share, e_share = self.share_manager.mask_and_inputs(step.gate.input_wires, triple)
        self.consumed_triples.add(step.triple_index)
        logger.debug("[Party %s] Consuming triple %d", self.role.value, step.triple_index)
        self.d.set(self.role, d_share)
        self.e.set(self.role, e_share)
        logger.debug(
            "[Party %s] Round %d: opening d share %d for %s",
            self.role.value, step.round, d_share, step.gate.gate_id,
        )
        return d_share

    def _open_e(self, step: RoundStep) -> int:
        e_share = self.e.get(self.role)
        logger.debug(
            "[Party %s] Round %d: opening e share %d for %s",
            self.role.value, step.round, e_share, step.gate.gate_id,
        )
        return e_share

    def _receive_d(self, step: RoundStep, bit: int):
        self.d.set(self.role.peer, bit)

    def _receive_e(self, step: RoundStep, bit: int):
        """Second message of an AND gate: both d and e are now public."""
        self.e.set(self.role.peer, bit)
        self.share_manager.complete_and_gate(
            step.gate.input_wires,
            step.gate.output_wire,
            self.triples[step.triple_index],
            self.d.value(),
            self.e.value(),
        )
        self._evaluate_local_gates()

    def _own_output_share(self) -> int:
        share = self.share_manager.get_share(self.circuit.output_wires[0])
        self.output_pair.set(self.role, share)
        return share

    def _send_step(self, step: RoundStep) -> int:
        if step.kind is StepKind.OPEN_D:
            return self._open_d(step)
        if step.kind is StepKind.OPEN_E:
            return self._open_e(step)
        return self._send_output(step)

    def _receive_step(self, step: RoundStep, bit: int):
        if step.kind is StepKind.OPEN_D:
            self._receive_d(step, bit)
        elif step.kind is StepKind.OPEN_E:
            self._receive_e(step, bit)
        else:
            self._receive_output(step, bit)

    def _send_output(self, step: RoundStep) -> int:
        raise NotImplementedError

    def _receive_output(self, step: RoundStep, bit: int):
        raise NotImplementedError

    # ---------------- output ----------------

    def has_output(self) -> bool:
        return self._has_output

    def output(self) -> int:
        """Reconstruct the plaintext result from both output shares."""
        self._require_init()
        if not self._has_output:
            raise OutputNotReady(f"Party {self.role.value} has no output yet")
        return self.output_pair.value()


class BeaverPartyA(BeaverParty):
    """
    Party A: speaks first in every round.

    A increments its round counter on send() and files the bit passed to
    the following receive() under that same round.
    """

    role = PartyRole.A

    def send(self) -> int:
        self._require_ready()
        if self.current_round > self._received_round:
            raise OutOfSequence(
                f"Party A already sent round {self.current_round} and is waiting for the reply"
            )
        step = self._step(self.current_round + 1)
        message = self._send_step(step)
        self.current_round += 1
        return message

    def receive(self, bit: int):
        bit = check_bit(bit, "bit")
        self._require_ready()
        if self.current_round == 0:
            raise OutOfSequence("Party A must send before it receives")
        if self._received_round == self.current_round:
            if self.current_round == self.last_round:
                raise ProtocolExhausted("Party A already received the last round")
            raise OutOfSequence(f"Party A already received round {self.current_round}")

        step = self._step(self.current_round)
        self._receive_step(step, bit)
        self._received_round = self.current_round

    def _send_output(self, step: RoundStep) -> int:
        share = self._own_output_share()
        if self.disclosure is Disclosure.BOTH:
            logger.debug("[Party A] Round %d: sending output share %d", step.round, share)
            return share
        return 0

    def _receive_output(self, step: RoundStep, bit: int):
        self.output_pair.set(PartyRole.B, bit)
        self._has_output = True
        logger.debug("[Party A] Round %d: output reconstructed", step.round)


class BeaverPartyB(BeaverParty):
    """
    Party B: reacts to A in every round.

    B files an incoming bit under round counter + 1 and increments its
    counter only on the send() that follows.
    """

    role = PartyRole.B

    def receive(self, bit: int):
        bit = check_bit(bit, "bit")
        self._require_ready()
        upcoming = self.current_round + 1
        step = self._step(upcoming)
        if self._received_round == upcoming:
            raise OutOfSequence(f"Party B already received round {upcoming}")

        self._receive_step(step, bit)
        self._received_round = upcoming

    def send(self) -> int:
        self._require_ready()
        upcoming = self.current_round + 1
        step = self._step(upcoming)
        if self._received_round != upcoming:
            raise OutOfSequence(f"Party B must receive round {upcoming} before sending")

        message = self._send_step(step)
        self.current_round = upcoming
        return message

    def _send_output(self, step: RoundStep) -> int:
        share = self.share_manager.get_share(self.circuit.output_wires[0])
        logger.debug("[Party B] Round %d: sending output share %d", step.round, share)
        return share

    def _receive_output(self, step: RoundStep, bit: int):
        if self.disclosure is not Disclosure.BOTH:
            return
        self._own_output_share()
        self.output_pair.set(PartyRole.A, bit)
        self._has_output = True
        logger.debug("[Party B] Round %d: output reconstructed", step.round)


# ================== ORCHESTRATION ==================


def exchange_input_shares(party_a: BeaverPartyA, party_b: BeaverPartyB):
    """One-time exchange of each party's peer halves, before round 1."""
    a_shares = party_a.send_input_share()
    b_shares = party_b.send_input_share()
    party_a.receive_input_share(b_shares)
    party_b.receive_input_share(a_shares)


def run_rounds(party_a: BeaverPartyA, party_b: BeaverPartyB) -> List[Tuple[int, int, int]]:
    """
    Drive both parties through every round in lock-step.

    Returns the transcript as (round, message from A, message from B).
    """
    transcript = []
    for _ in range(party_a.last_round):
        a_message = party_a.send()
        party_b.receive(a_message)
        b_message = party_b.send()
        party_a.receive(b_message)

        if party_a.current_round != party_b.current_round:
            raise OutOfSequence(
                f"parties desynchronized: A at round {party_a.current_round}, "
                f"B at round {party_b.current_round}"
            )
        transcript.append((party_a.current_round, a_message, b_message))
    return transcript


class BeaverProtocol:
    """
    Coordinates a complete run: dealer setup, input sharing and the rounds.
    Handles timing and statistics collection.
    """

    def __init__(
        self,
        circuit: Optional[BeaverCircuit] = None,
        disclosure: Disclosure = Disclosure.A_ONLY,
        bit_source: Optional[BitSource] = None,
    ):
        self.circuit = circuit or create_disjointness_circuit()
        self.disclosure = disclosure
        self.bit_source = bit_source or default_bit_source()

        self.dealer: Optional[TrustedDealer] = None
        self.party_a: Optional[BeaverPartyA] = None
        self.party_b: Optional[BeaverPartyB] = None

        self.timing_stats: Dict[str, float] = {}
        self.transcript: List[Tuple[int, int, int]] = []

    def execute_protocol(self, a_input: int, b_input: int) -> int:
        """
        Execute the complete protocol with timing.

        Returns:
            The output bit as reconstructed by Party A
        """
        total_start_time = time.time()
        logger.info("Starting Beaver protocol execution")

        # Phase 0: Dealer setup (fresh randomness for every run)
        setup_start_time = time.time()
        self.dealer = TrustedDealer(
            triple_count=len(self.circuit.get_and_gates()), bit_source=self.bit_source
        )
        self.dealer.init()
        self.party_a = BeaverPartyA(self.circuit, self.disclosure, self.bit_source)
        self.party_b = BeaverPartyB(self.circuit, self.disclosure, self.bit_source)
        self.timing_stats["dealer_setup"] = time.time() - setup_start_time

        # Phase 1: Input sharing
        sharing_start_time = time.time()
        self.party_a.init(a_input, self.dealer.randomness_for_a())
        self.party_b.init(b_input, self.dealer.randomness_for_b())
        exchange_input_shares(self.party_a, self.party_b)
        self.timing_stats["input_sharing"] = time.time() - sharing_start_time

        # Phase 2: Circuit evaluation
        evaluation_start_time = time.time()
        self.transcript = run_rounds(self.party_a, self.party_b)
        self.timing_stats["circuit_evaluation"] = time.time() - evaluation_start_time

        result = self.party_a.output()
        self.timing_stats["total_time"] = time.time() - total_start_time

        logger.info(
            "Protocol completed in %.4f seconds over %d rounds",
            self.timing_stats["total_time"], len(self.transcript),
        )
        self._log_gate_statistics()
        return result

    def _log_gate_statistics(self):
        """Log statistics about the circuit."""
        and_gates = len(self.circuit.get_and_gates())
        logger.info(
            "Circuit: %d gates (%d AND, %d XOR, %d NOT), %d communication rounds",
            len(self.circuit.gates),
            and_gates,
            len(self.circuit.get_xor_gates()),
            len(self.circuit.get_not_gates()),
            2 * and_gates + 1,
        )


# ================== DEMONSTRATION ==================


def demonstrate_disjointness():
    """Run every pair of 3-bit inputs through the default circuit."""
    print("\n--- Disjointness test: output 1 iff A & B == 0 ---")

    failures = 0
    for a_value in range(8):
        for b_value in range(8):
            protocol = BeaverProtocol()
            result = protocol.execute_protocol(a_value, b_value)
            expected = int((a_value & b_value) == 0)
            mark = "✅" if result == expected else "❌"
            if result != expected:
                failures += 1
            print(f"{mark} A={a_value:03b} B={b_value:03b} -> {result} (expected {expected})")

    print(f"\n🏁 {64 - failures}/64 combinations correct")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")
    demonstrate_disjointness()
