"""
Beaver Secret Sharing Module

This module implements XOR-based secret sharing of single bits.
In XOR secret sharing:
- A secret bit s is shared as (s_a, s_b) where s = s_a ⊕ s_b
- Party A holds s_a, Party B holds s_b
- Either share alone is a uniformly random bit

It also holds each party's side of the local gates and of the Beaver AND.
"""

import logging
from enum import Enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .beaver_circuit import BeaverWire
from .beaver_random import BitSource, default_bit_source

logger = logging.getLogger(__name__)


class PartyRole(Enum):
    """The two computing parties."""

    A = "A"
    B = "B"

    @property
    def peer(self) -> "PartyRole":
        return PartyRole.B if self is PartyRole.A else PartyRole.A


def check_bit(value: int, name: str = "value") -> int:
    if value not in (0, 1):
        raise ValueError(f"{name} must be 0 or 1, got {value!r}")
    return int(value)


@dataclass
class SecretSharingPair:
    """
    A bit held as two XOR shares, one per party.

    The value is never validated after construction: flipping one share
    flips the value, which is how NOT gates work.
    """

    share_a: int = 0
    share_b: int = 0

    @classmethod
    def new(cls, value: int, bit_source: Optional[BitSource] = None) -> "SecretSharingPair":
        """Share `value` with a fresh uniform share for A."""
        share_a, share_b = XORSecretSharing.share_secret(value, bit_source)
        return cls(share_a, share_b)

    def value(self) -> int:
        return self.share_a ^ self.share_b

    def get(self, role: PartyRole) -> int:
        return self.share_a if role is PartyRole.A else self.share_b

    def set(self, role: PartyRole, share: int):
        if role is PartyRole.A:
            self.share_a = check_bit(share, "share")
        else:
            self.share_b = check_bit(share, "share")

    def negate(self, role: PartyRole):
        """Flip one party's share, negating the shared value."""
        self.set(role, 1 ^ self.get(role))


class XORSecretSharing:
    """
    Implements XOR-based secret sharing for bits.
    This is an aggregation of static helpers, not a stateful object.
    """

    @staticmethod
    def share_secret(
        secret: int, bit_source: Optional[BitSource] = None
    ) -> Tuple[int, int]:
        """
        Share a secret bit using XOR sharing.

        Args:
            secret: The bit to share
            bit_source: Where A's share is drawn from (OS entropy by default)

        Returns:
            Tuple of (share_a, share_b) where secret = share_a ⊕ share_b
        """
        secret = check_bit(secret, "secret")
        source = bit_source or default_bit_source()

        # A's share is uniform, B's share is fixed by it
        share_a = source.random_bit()
        share_b = secret ^ share_a

        return share_a, share_b

    @staticmethod
    def reconstruct_secret(share_a: int, share_b: int) -> int:
        """Reconstruct a secret from its XOR shares."""
        return share_a ^ share_b


def beaver_and_share(
    role: PartyRole, x: int, y: int, w: int, d: int, e: int
) -> int:
    """
    One party's share of x·y from Beaver's masked openings.

    With d = x ⊕ u and e = y ⊕ v opened, and w = u·v shared:
        z_A = w_A ⊕ e·x_A ⊕ d·y_A ⊕ e·d
        z_B = w_B ⊕ e·x_B ⊕ d·y_B

    The public e·d term is added by exactly one side (A). Then
    z_A ⊕ z_B = w ⊕ e·x ⊕ d·y ⊕ e·d = x·y.
    """
    share = w ^ (e & x) ^ (d & y)
    if role is PartyRole.A:
        share ^= e & d
    return share


class BeaverShareManager:
    """
    Manages one party's shares of circuit wires during protocol execution.
    Each party owns exactly one of these.
    """

    def __init__(self, role: PartyRole):
        if not isinstance(role, PartyRole):
            raise ValueError("role must be PartyRole.A or PartyRole.B")

        self.role = role
        self.shares: Dict[BeaverWire, int] = {}

    def set_input_shares(self, input_shares: Dict[BeaverWire, int]):
        """Set the initial input shares for this party, all or none."""
        for wire, share in input_shares.items():
            check_bit(share, f"share of {wire.wire_id}")
        for wire, share in input_shares.items():
            self.set_share(wire, share)

    def get_share(self, wire: BeaverWire) -> int:
        """Get this party's share of a wire's value."""
        if wire not in self.shares:
            raise ValueError(f"No share available for wire {wire.wire_id}")
        return self.shares[wire]

    def set_share(self, wire: BeaverWire, share: int):
        """Set this party's share of a wire's value."""
        self.shares[wire] = check_bit(share, "share")

    def has_share(self, wire: BeaverWire) -> bool:
        return wire in self.shares

    def __contains__(self, wire: BeaverWire) -> bool:
        return self.has_share(wire)

    def evaluate_xor_gate(
        self, gate_input_wires: List[BeaverWire], gate_output_wire: BeaverWire
    ):
        """
        Evaluate an XOR gate locally (no communication needed).

        (a ⊕ b) = (a_A ⊕ a_B) ⊕ (b_A ⊕ b_B) = (a_A ⊕ b_A) ⊕ (a_B ⊕ b_B)
        """
        if len(gate_input_wires) != 2:
            raise ValueError("XOR gate must have exactly 2 inputs")

        share1 = self.get_share(gate_input_wires[0])
        share2 = self.get_share(gate_input_wires[1])
        output_share = share1 ^ share2

        self.set_share(gate_output_wire, output_share)
        logger.debug(
            "[Party %s] XOR gate: %d ⊕ %d = %d",
            self.role.value, share1, share2, output_share,
        )

    def evaluate_not_gate(self, gate_input_wire: BeaverWire, gate_output_wire: BeaverWire):
        """
        Evaluate a NOT gate locally (no communication needed).

        NOT(x) = NOT(x_A ⊕ x_B) = (NOT x_A) ⊕ x_B

        Only Party A flips its share; Party B copies its share unchanged.
        """
        input_share = self.get_share(gate_input_wire)

        if self.role is PartyRole.A:
            output_share = 1 ^ input_share
            logger.debug(
                "[Party A] NOT gate: NOT(%d) = %d (flipped)", input_share, output_share
            )
        else:
            output_share = input_share
            logger.debug(
                "[Party B] NOT gate: %d = %d (unchanged)", input_share, output_share
            )

        self.set_share(gate_output_wire, output_share)

    def mask_and_inputs(self, gate_input_wires: List[BeaverWire], triple) -> Tuple[int, int]:
        """
        Mask this party's shares of an AND gate's operands with a triple.

        Returns:
            (d_share, e_share) with d = x ⊕ u and e = y ⊕ v
        """
        if len(gate_input_wires) != 2:
            raise ValueError("AND gate must have exactly 2 inputs")

        x = self.get_share(gate_input_wires[0])
        y = self.get_share(gate_input_wires[1])
        return x ^ triple.u, y ^ triple.v

    def complete_and_gate(
        self,
        gate_input_wires: List[BeaverWire],
        gate_output_wire: BeaverWire,
        triple,
        d: int,
        e: int,
    ) -> int:
        """Store this party's share of an AND gate's output from opened d and e."""
        x = self.get_share(gate_input_wires[0])
        y = self.get_share(gate_input_wires[1])
        output_share = beaver_and_share(self.role, x, y, triple.w, d, e)

        self.set_share(gate_output_wire, output_share)
        logger.debug(
            "[Party %s] AND gate %s: d=%d e=%d -> share %d",
            self.role.value, gate_output_wire.wire_id, d, e, output_share,
        )
        return output_share
