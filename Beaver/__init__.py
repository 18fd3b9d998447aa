"""
Beaver Protocol Package

This package implements two-party secure circuit evaluation over XOR-shared
bits, with AND gates computed from dealer-issued Beaver triples.

Modules:
- beaver_circuit: Circuit representation, round schedule and the 5-AND circuit
- beaver_shares: XOR secret sharing and each party's share bookkeeping
- beaver_dealer: Beaver triples and the trusted dealer
- beaver_protocol: Party A / Party B state machines and the orchestrator
- beaver_random: Random bit sources
- beaver_errors: Protocol fault kinds

Usage:
    from Beaver import BeaverProtocol

    protocol = BeaverProtocol()
    result = protocol.execute_protocol(a_input, b_input)
"""

from .beaver_circuit import (
    BeaverCircuit,
    BeaverWire,
    BeaverGate,
    BeaverGateType,
    RoundStep,
    StepKind,
    build_round_schedule,
    create_disjointness_circuit,
    pack_inputs,
    unpack_input,
)

from .beaver_shares import (
    BeaverShareManager,
    PartyRole,
    SecretSharingPair,
    XORSecretSharing,
    beaver_and_share,
)

from .beaver_dealer import RandomnessTriple, TrustedDealer, reconstruct_triple

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

from .beaver_random import BitSource, SeededBitSource, SystemBitSource

from .beaver_protocol import (
    BeaverParty,
    BeaverPartyA,
    BeaverPartyB,
    BeaverProtocol,
    Disclosure,
    exchange_input_shares,
    run_rounds,
)

__all__ = [
    "BeaverCircuit",
    "BeaverWire",
    "BeaverGate",
    "BeaverGateType",
    "RoundStep",
    "StepKind",
    "build_round_schedule",
    "create_disjointness_circuit",
    "pack_inputs",
    "unpack_input",
    "BeaverShareManager",
    "PartyRole",
    "SecretSharingPair",
    "XORSecretSharing",
    "beaver_and_share",
    "RandomnessTriple",
    "TrustedDealer",
    "reconstruct_triple",
    "BeaverProtocolError",
    "AlreadyInitialized",
    "InvalidInput",
    "NotInitialized",
    "OutOfSequence",
    "OutputNotReady",
    "ProtocolExhausted",
    "TripleReused",
    "BitSource",
    "SeededBitSource",
    "SystemBitSource",
    "BeaverParty",
    "BeaverPartyA",
    "BeaverPartyB",
    "BeaverProtocol",
    "Disclosure",
    "exchange_input_shares",
    "run_rounds",
]
