"""
Random Bit Sources

The dealer and every share construction draw uniform bits from a bit source.
SystemBitSource reads OS entropy and is the default. SeededBitSource expands a
seed with the ChaCha20 stream cipher so that a whole protocol run can be
replayed bit for bit.
"""

import hashlib
import secrets
from typing import Optional

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms


class BitSource:
    """Interface of a uniform random bit generator."""

    def random_bit(self) -> int:
        raise NotImplementedError


class SystemBitSource(BitSource):
    """Bits from the operating system's CSPRNG."""

    def random_bit(self) -> int:
        return secrets.randbits(1)


class SeededBitSource(BitSource):
    """
    Deterministic bits from a ChaCha20 keystream.

    The 32-byte key is SHA-256(seed); the nonce is fixed at zero, so a seed
    must not be shared between runs that need independent randomness.
    Keystream bytes are produced in blocks and consumed LSB first.
    """

    _BLOCK_BYTES = 64

    def __init__(self, seed: bytes):
        if isinstance(seed, str):
            seed = seed.encode("utf-8")
        if not seed:
            raise ValueError("seed must not be empty")

        key = hashlib.sha256(seed).digest()
        cipher = Cipher(algorithms.ChaCha20(key, b"\x00" * 16), mode=None)
        self._keystream = cipher.encryptor()
        self._buffer = b""
        self._bit_index = 0

    def _refill(self):
        self._buffer = self._keystream.update(b"\x00" * self._BLOCK_BYTES)
        self._bit_index = 0

    def random_bit(self) -> int:
        if self._bit_index >= len(self._buffer) * 8:
            self._refill()
        byte = self._buffer[self._bit_index // 8]
        bit = (byte >> (self._bit_index % 8)) & 1
        self._bit_index += 1
        return bit


_default_source: Optional[BitSource] = None


def default_bit_source() -> BitSource:
    """Return the process-wide SystemBitSource."""
    global _default_source
    if _default_source is None:
        _default_source = SystemBitSource()
    return _default_source
