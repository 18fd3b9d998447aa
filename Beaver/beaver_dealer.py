"""
Trusted Dealer Module

The dealer runs once before the protocol. For every AND gate it draws a
random pair (u, v), sets w = u·v, and XOR-shares u, v and w independently
between the parties. Party A receives the A halves, Party B the B halves.
The dealer is never contacted again after distribution.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .beaver_errors import NotInitialized
from .beaver_random import BitSource, default_bit_source
from .beaver_shares import SecretSharingPair, XORSecretSharing

logger = logging.getLogger(__name__)

DEFAULT_TRIPLE_COUNT = 5


@dataclass(frozen=True)
class RandomnessTriple:
    """One party's half of a Beaver triple (u, v, w = u·v)."""

    u: int
    v: int
    w: int


def reconstruct_triple(half_a: RandomnessTriple, half_b: RandomnessTriple) -> RandomnessTriple:
    """Combine both halves into the plaintext triple (for testing)."""
    return RandomnessTriple(
        u=XORSecretSharing.reconstruct_secret(half_a.u, half_b.u),
        v=XORSecretSharing.reconstruct_secret(half_a.v, half_b.v),
        w=XORSecretSharing.reconstruct_secret(half_a.w, half_b.w),
    )


class TrustedDealer:
    """
    Generates and hands out the correlated randomness for one protocol run.
    """

    def __init__(
        self,
        triple_count: int = DEFAULT_TRIPLE_COUNT,
        bit_source: Optional[BitSource] = None,
    ):
        if triple_count < 1:
            raise ValueError("triple_count must be at least 1")

        self.triple_count = triple_count
        self.bit_source = bit_source or default_bit_source()
        self._randomness_for_a: Optional[List[RandomnessTriple]] = None
        self._randomness_for_b: Optional[List[RandomnessTriple]] = None

    def init(self):
        """Generate every triple the protocol will consume (one per AND gate)."""
        for_a = []
        for_b = []

        for _ in range(self.triple_count):
            u = self.bit_source.random_bit()
            v = self.bit_source.random_bit()
            w = u & v

            u_secret = SecretSharingPair.new(u, self.bit_source)
            v_secret = SecretSharingPair.new(v, self.bit_source)
            w_secret = SecretSharingPair.new(w, self.bit_source)

            for_a.append(
                RandomnessTriple(u=u_secret.share_a, v=v_secret.share_a, w=w_secret.share_a)
            )
            for_b.append(
                RandomnessTriple(u=u_secret.share_b, v=v_secret.share_b, w=w_secret.share_b)
            )

        self._randomness_for_a = for_a
        self._randomness_for_b = for_b
        logger.debug("[Dealer] Generated %d triples", self.triple_count)

    @property
    def initialized(self) -> bool:
        return self._randomness_for_a is not None

    def randomness_for_a(self) -> List[RandomnessTriple]:
        """Party A's halves of all triples, in gate order."""
        if self._randomness_for_a is None:
            raise NotInitialized("dealer randomness requested before init()")
        return list(self._randomness_for_a)

    def randomness_for_b(self) -> List[RandomnessTriple]:
        """Party B's halves of all triples, in gate order."""
        if self._randomness_for_b is None:
            raise NotInitialized("dealer randomness requested before init()")
        return list(self._randomness_for_b)
