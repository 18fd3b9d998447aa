"""
Tests for the Party A / Party B state machines and the protocol driver.

Covers end-to-end correctness for every pair of 3-bit inputs, the round
convention, disclosure policies, the fault kinds and a statistical smoke
test on the opened values.
"""

import pytest

from .beaver_circuit import (
    BeaverCircuit,
    BeaverGate,
    BeaverGateType,
    BeaverWire,
    create_disjointness_circuit,
)
from .beaver_dealer import TrustedDealer
from .beaver_errors import (
    AlreadyInitialized,
    BeaverProtocolError,
    InvalidInput,
    NotInitialized,
    OutOfSequence,
    OutputNotReady,
    ProtocolExhausted,
    TripleReused,
)
from .beaver_protocol import (
    BeaverPartyA,
    BeaverPartyB,
    BeaverProtocol,
    Disclosure,
    exchange_input_shares,
    run_rounds,
)
from .beaver_random import SeededBitSource


def _expected(a_value, b_value):
    """AND(NAND(a), NAND(b), NAND(r)) over the two inputs' bit positions."""
    result = 1
    for bit in range(3):
        result &= 1 ^ (((a_value >> bit) & 1) & ((b_value >> bit) & 1))
    return result


def _ready_parties(a_value, b_value, disclosure=Disclosure.A_ONLY, circuit=None):
    circuit = circuit or create_disjointness_circuit()
    dealer = TrustedDealer(triple_count=len(circuit.get_and_gates()))
    dealer.init()

    party_a = BeaverPartyA(circuit, disclosure)
    party_b = BeaverPartyB(circuit, disclosure)
    party_a.init(a_value, dealer.randomness_for_a())
    party_b.init(b_value, dealer.randomness_for_b())
    exchange_input_shares(party_a, party_b)
    return party_a, party_b


# ---------------- end-to-end correctness ----------------


@pytest.mark.parametrize("a_value", range(8))
@pytest.mark.parametrize("b_value", range(8))
def test_all_input_combinations(a_value, b_value):
    party_a, party_b = _ready_parties(a_value, b_value)
    run_rounds(party_a, party_b)

    assert party_a.has_output()
    assert party_a.output() == _expected(a_value, b_value)


@pytest.mark.parametrize(
    "a_value, b_value, expected",
    [
        (0b000, 0b000, 1),  # nothing set
        (0b111, 0b111, 0),  # every position overlaps
        (0b001, 0b001, 0),  # r overlaps
        (0b100, 0b011, 1),  # a vs b,r: no overlap
        (0b110, 0b010, 0),  # b overlaps
        (0b101, 0b010, 1),
    ],
)
def test_protocol_examples(a_value, b_value, expected):
    assert BeaverProtocol().execute_protocol(a_value, b_value) == expected


def test_repeated_runs_stay_correct():
    for _ in range(25):
        assert BeaverProtocol().execute_protocol(0b011, 0b100) == 1
        assert BeaverProtocol().execute_protocol(0b011, 0b110) == 0


def test_execute_protocol_records_stats_and_transcript():
    protocol = BeaverProtocol()
    protocol.execute_protocol(5, 2)

    assert [entry[0] for entry in protocol.transcript] == list(range(1, 12))
    assert set(protocol.timing_stats) == {
        "dealer_setup",
        "input_sharing",
        "circuit_evaluation",
        "total_time",
    }


def test_seeded_runs_are_reproducible():
    first = BeaverProtocol(bit_source=SeededBitSource(b"run"))
    second = BeaverProtocol(bit_source=SeededBitSource(b"run"))
    assert first.execute_protocol(6, 1) == second.execute_protocol(6, 1) == 1
    assert first.transcript == second.transcript


# ---------------- round convention ----------------


def test_parties_never_desynchronize():
    party_a, party_b = _ready_parties(3, 4)

    for expected_round in range(1, 12):
        a_message = party_a.send()
        assert party_a.current_round == expected_round
        assert party_b.current_round == expected_round - 1

        party_b.receive(a_message)
        assert party_b.current_round == expected_round - 1

        b_message = party_b.send()
        assert party_b.current_round == expected_round

        party_a.receive(b_message)
        assert party_a.current_round == expected_round


def test_each_party_consumes_each_triple_once():
    party_a, party_b = _ready_parties(1, 6)
    run_rounds(party_a, party_b)
    assert party_a.consumed_triples == set(range(5))
    assert party_b.consumed_triples == set(range(5))


def test_input_share_exchange_returns_peer_halves():
    circuit = create_disjointness_circuit()
    dealer = TrustedDealer()
    dealer.init()
    party_a = BeaverPartyA(circuit)
    party_a.init(0b101, dealer.randomness_for_a())

    sent = party_a.send_input_share()
    assert len(sent) == 3
    for wire, share in zip(circuit.party_a_input_wires, sent):
        assert share ^ party_a.share_manager.get_share(wire) == party_a.inputs[wire].value()
    assert [party_a.inputs[w].value() for w in circuit.party_a_input_wires] == [1, 0, 1]


# ---------------- disclosure ----------------


def test_a_only_disclosure_keeps_output_from_b():
    party_a, party_b = _ready_parties(2, 5)
    transcript = run_rounds(party_a, party_b)

    assert transcript[-1][1] == 0  # A's last message is filler
    assert party_a.output() == 1
    assert not party_b.has_output()
    with pytest.raises(OutputNotReady):
        party_b.output()


@pytest.mark.parametrize("a_value, b_value", [(0, 0), (7, 7), (4, 3), (1, 1)])
def test_both_disclosure_lets_both_parties_reconstruct(a_value, b_value):
    party_a, party_b = _ready_parties(a_value, b_value, Disclosure.BOTH)
    run_rounds(party_a, party_b)

    assert party_a.has_output() and party_b.has_output()
    assert party_a.output() == party_b.output() == _expected(a_value, b_value)


# ---------------- faults ----------------


def test_twelfth_call_is_exhausted_and_output_is_settled():
    party_a, party_b = _ready_parties(7, 0)
    run_rounds(party_a, party_b)
    settled = party_a.output()

    with pytest.raises(ProtocolExhausted):
        party_a.send()
    with pytest.raises(ProtocolExhausted):
        party_a.receive(1)
    with pytest.raises(ProtocolExhausted):
        party_b.receive(1)
    with pytest.raises(ProtocolExhausted):
        party_b.send()

    assert party_a.output() == settled == 1
    assert party_a.current_round == party_b.current_round == 11


def test_methods_before_init():
    party_a = BeaverPartyA()
    party_b = BeaverPartyB()

    assert not party_a.has_output()
    with pytest.raises(NotInitialized):
        party_a.send()
    with pytest.raises(NotInitialized):
        party_b.receive(0)
    with pytest.raises(NotInitialized):
        party_a.send_input_share()
    with pytest.raises(NotInitialized):
        party_b.receive_input_share((0, 1, 0))
    with pytest.raises(NotInitialized):
        party_a.output()


def test_rounds_before_input_share_exchange():
    dealer = TrustedDealer()
    dealer.init()
    party_a = BeaverPartyA()
    party_a.init(3, dealer.randomness_for_a())
    with pytest.raises(NotInitialized, match="input shares"):
        party_a.send()


def test_output_before_last_round():
    party_a, party_b = _ready_parties(1, 2)
    for _ in range(10):
        party_b.receive(party_a.send())
        party_a.receive(party_b.send())

    assert not party_a.has_output()
    with pytest.raises(OutputNotReady):
        party_a.output()


def test_out_of_sequence_calls():
    party_a, party_b = _ready_parties(1, 2)

    with pytest.raises(OutOfSequence):
        party_a.receive(0)
    with pytest.raises(OutOfSequence):
        party_b.send()

    party_b.receive(party_a.send())
    with pytest.raises(OutOfSequence):
        party_a.send()
    with pytest.raises(OutOfSequence):
        party_b.receive(0)

    party_a.receive(party_b.send())
    with pytest.raises(OutOfSequence):
        party_a.receive(0)


def test_reused_triple_is_refused():
    party_a, _ = _ready_parties(1, 2)
    party_a.consumed_triples.add(0)
    with pytest.raises(TripleReused):
        party_a.send()
    assert party_a.current_round == 0
    assert party_a.consumed_triples == {0}


def test_bad_init_arguments():
    dealer = TrustedDealer()
    dealer.init()
    party_a = BeaverPartyA()

    with pytest.raises(InvalidInput):
        party_a.init(8, dealer.randomness_for_a())
    with pytest.raises(ValueError, match="triples"):
        party_a.init(3, dealer.randomness_for_a()[:4])


def test_second_init_is_refused_and_output_stays_settled():
    party_a, party_b = _ready_parties(7, 7)
    run_rounds(party_a, party_b)

    fresh = TrustedDealer()
    fresh.init()
    with pytest.raises(AlreadyInitialized):
        party_a.init(0, fresh.randomness_for_a())
    with pytest.raises(AlreadyInitialized):
        party_b.init(0, fresh.randomness_for_b())

    assert party_a.output() == 0
    assert party_a.current_round == 11


def test_rejected_input_shares_leave_nothing_behind():
    circuit = create_disjointness_circuit()
    dealer = TrustedDealer()
    dealer.init()
    party_a = BeaverPartyA(circuit)
    party_a.init(5, dealer.randomness_for_a())

    with pytest.raises(ValueError):
        party_a.receive_input_share((1, 0, 5))
    assert not any(party_a.share_manager.has_share(w) for w in circuit.party_b_input_wires)
    with pytest.raises(NotInitialized, match="input shares"):
        party_a.send()


def test_bad_wire_values():
    party_a, party_b = _ready_parties(1, 2)
    with pytest.raises(ValueError):
        party_b.receive(2)
    with pytest.raises(ValueError):
        party_a.receive_input_share((0, 1))


def test_protocol_errors_share_a_base():
    for error in (
        AlreadyInitialized,
        NotInitialized,
        ProtocolExhausted,
        OutputNotReady,
        TripleReused,
        OutOfSequence,
    ):
        assert issubclass(error, BeaverProtocolError)


# ---------------- opened values ----------------


def test_opened_values_look_uniform():
    """
    Smoke test, not a proof: with both inputs fixed, every opened d and e
    should be a fair coin across runs because each is masked by a fresh
    dealer bit.
    """
    trials = 400
    ones_a = [0] * 10
    ones_opened = [0] * 10

    for _ in range(trials):
        party_a, party_b = _ready_parties(0b110, 0b011)
        transcript = run_rounds(party_a, party_b)
        for index, (_, a_message, b_message) in enumerate(transcript[:10]):
            ones_a[index] += a_message
            ones_opened[index] += a_message ^ b_message

    for count in ones_a + ones_opened:
        assert 0.3 * trials < count < 0.7 * trials


# ---------------- other circuits ----------------


def _mixed_circuit():
    """output = NOT(a XOR b) AND c with A holding (a, c) and B holding b."""
    a, b, c = BeaverWire("input_a"), BeaverWire("input_b"), BeaverWire("input_c")
    xor_out, not_out, final_out = (
        BeaverWire("xor_output"),
        BeaverWire("not_output"),
        BeaverWire("final_output"),
    )
    gates = [
        BeaverGate("xor_ab", BeaverGateType.XOR, [a, b], xor_out),
        BeaverGate("not_xor", BeaverGateType.NOT, [xor_out], not_out),
        BeaverGate("and_final", BeaverGateType.AND, [not_out, c], final_out),
    ]
    return BeaverCircuit(
        gates=gates,
        input_wires=[a, b, c],
        output_wires=[final_out],
        party_a_input_wires=[a, c],
        party_b_input_wires=[b],
    )


def _negated_input_circuit():
    """output = NOT(NOT(x) AND y): NOT applied to A's input wire before the AND."""
    x, y = BeaverWire("alice_x"), BeaverWire("bob_y")
    not_x, and_out, out = BeaverWire("not_x"), BeaverWire("and_out"), BeaverWire("output")
    gates = [
        BeaverGate("negate_x", BeaverGateType.NOT, [x], not_x),
        BeaverGate("and_xy", BeaverGateType.AND, [not_x, y], and_out),
        BeaverGate("nand", BeaverGateType.NOT, [and_out], out),
    ]
    return BeaverCircuit(
        gates=gates,
        input_wires=[x, y],
        output_wires=[out],
        party_a_input_wires=[x],
        party_b_input_wires=[y],
    )


@pytest.mark.parametrize("a_value", range(4))
@pytest.mark.parametrize("b_value", range(2))
def test_mixed_gate_circuit(a_value, b_value):
    circuit = _mixed_circuit()
    protocol = BeaverProtocol(circuit)

    assert protocol.execute_protocol(a_value, b_value) == circuit.evaluate_plaintext_ints(
        a_value, b_value
    )
    assert len(protocol.transcript) == 3


@pytest.mark.parametrize("x, y", [(0, 0), (0, 1), (1, 0), (1, 1)])
def test_not_on_input_wire(x, y):
    result = BeaverProtocol(_negated_input_circuit()).execute_protocol(x, y)
    assert result == 1 ^ ((1 ^ x) & y)
