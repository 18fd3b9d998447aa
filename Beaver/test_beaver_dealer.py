"""
Tests for the trusted dealer and the random bit sources it draws from.
"""

import dataclasses

import pytest

from .beaver_dealer import RandomnessTriple, TrustedDealer, reconstruct_triple
from .beaver_errors import NotInitialized
from .beaver_random import SeededBitSource, SystemBitSource


def test_every_triple_satisfies_u_and_v_equals_w():
    for _ in range(200):
        dealer = TrustedDealer()
        dealer.init()
        halves = zip(dealer.randomness_for_a(), dealer.randomness_for_b())
        for index, (half_a, half_b) in enumerate(halves):
            triple = reconstruct_triple(half_a, half_b)
            assert triple.u & triple.v == triple.w, f"triple {index} is broken"


def test_dealer_hands_out_one_triple_per_and_gate():
    dealer = TrustedDealer()
    dealer.init()
    assert len(dealer.randomness_for_a()) == 5
    assert len(dealer.randomness_for_b()) == 5

    dealer = TrustedDealer(triple_count=2)
    dealer.init()
    assert len(dealer.randomness_for_a()) == 2


def test_dealer_covers_all_triple_values():
    seen = set()
    for _ in range(300):
        dealer = TrustedDealer(triple_count=1)
        dealer.init()
        triple = reconstruct_triple(dealer.randomness_for_a()[0], dealer.randomness_for_b()[0])
        seen.add((triple.u, triple.v))
    assert seen == {(0, 0), (0, 1), (1, 0), (1, 1)}


def test_randomness_requested_before_init():
    dealer = TrustedDealer()
    assert not dealer.initialized
    with pytest.raises(NotInitialized):
        dealer.randomness_for_a()
    with pytest.raises(NotInitialized):
        dealer.randomness_for_b()


def test_triple_count_must_be_positive():
    with pytest.raises(ValueError):
        TrustedDealer(triple_count=0)


def test_triples_are_read_only():
    dealer = TrustedDealer()
    dealer.init()
    with pytest.raises(dataclasses.FrozenInstanceError):
        dealer.randomness_for_a()[0].u = 1


def test_returned_lists_are_copies():
    dealer = TrustedDealer()
    dealer.init()
    dealer.randomness_for_a().clear()
    assert len(dealer.randomness_for_a()) == 5


def test_seeded_dealer_is_deterministic():
    dealer_1 = TrustedDealer(bit_source=SeededBitSource(b"dealer"))
    dealer_2 = TrustedDealer(bit_source=SeededBitSource(b"dealer"))
    dealer_1.init()
    dealer_2.init()
    assert dealer_1.randomness_for_a() == dealer_2.randomness_for_a()
    assert dealer_1.randomness_for_b() == dealer_2.randomness_for_b()


def test_reconstruct_triple():
    triple = reconstruct_triple(RandomnessTriple(1, 0, 1), RandomnessTriple(0, 0, 0))
    assert triple == RandomnessTriple(u=1, v=0, w=1)


# ---------------- bit sources ----------------


def test_system_bits_are_bits():
    source = SystemBitSource()
    bits = [source.random_bit() for _ in range(500)]
    assert set(bits) == {0, 1}


def test_seeded_source_repeats_for_same_seed():
    source_1, source_2 = SeededBitSource(b"abc"), SeededBitSource(b"abc")
    first = [source_1.random_bit() for _ in range(2000)]
    second = [source_2.random_bit() for _ in range(2000)]
    assert first == second


def test_seeded_source_differs_between_seeds():
    source_1, source_2 = SeededBitSource(b"abc"), SeededBitSource(b"abd")
    first = [source_1.random_bit() for _ in range(256)]
    second = [source_2.random_bit() for _ in range(256)]
    assert first != second


def test_seeded_source_accepts_str_seed():
    source_1, source_2 = SeededBitSource("abc"), SeededBitSource(b"abc")
    assert [source_1.random_bit() for _ in range(64)] == [
        source_2.random_bit() for _ in range(64)
    ]


def test_seeded_source_is_roughly_balanced():
    source = SeededBitSource(b"balance")
    ones = sum(source.random_bit() for _ in range(4096))
    assert 1700 < ones < 2400


def test_empty_seed_is_rejected():
    with pytest.raises(ValueError):
        SeededBitSource(b"")
