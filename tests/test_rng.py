"""Tests for the seeded random streams.

Test suites:
1. Determinism (same seed ⇒ same sequence)
2. Range ([0, 1) for every draw)
3. Layer independence (four seeds ⇒ four different sequences)
4. API (iteration, take, seed masking, validation)
"""

import itertools

import pytest

from src.fusion_renderer import rng
from src.fusion_renderer.rng import SeededRandom


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(params=sorted(rng.LAYER_SEEDS))
def layer_seed(request):
    """Each texture layer seed in turn."""
    return rng.LAYER_SEEDS[request.param]


# ============================================================================
# DETERMINISM
# ============================================================================

def test_same_seed_same_sequence(layer_seed):
    assert SeededRandom(layer_seed).take(500) == SeededRandom(layer_seed).take(500)


def test_call_and_next_share_stream():
    a = SeededRandom(1234)
    b = SeededRandom(1234)
    assert [a() for _ in range(10)] == [b.next() for _ in range(10)]


def test_state_advances_by_increment():
    r = SeededRandom(0)
    r.next()
    assert r.state == rng.INCREMENT
    r.next()
    assert r.state == (2 * rng.INCREMENT) & rng.MASK32


def test_fresh_instance_restarts_sequence():
    first = SeededRandom(rng.CRUMB_SEED)
    first.take(37)
    assert SeededRandom(rng.CRUMB_SEED).take(5) == SeededRandom(rng.CRUMB_SEED).take(5)
    assert first.take(5) != SeededRandom(rng.CRUMB_SEED).take(5)


# ============================================================================
# RANGE
# ============================================================================

def test_values_in_unit_interval(layer_seed):
    values = SeededRandom(layer_seed).take(10000)
    assert all(0.0 <= v < 1.0 for v in values)


def test_values_spread_over_interval():
    values = SeededRandom(rng.BACKGROUND_SEED).take(4000)
    # Every tenth of [0, 1) gets hit, roughly uniformly
    buckets = [0] * 10
    for v in values:
        buckets[int(v * 10)] += 1
    assert min(buckets) > 300
    assert max(buckets) < 500


def test_values_are_multiples_of_two_pow_minus_32():
    for v in SeededRandom(42).take(100):
        assert (v * rng.NORMALIZER).is_integer()


# ============================================================================
# LAYER INDEPENDENCE
# ============================================================================

def test_layer_seeds_are_distinct():
    assert len(set(rng.LAYER_SEEDS.values())) == 4


def test_layer_streams_differ():
    sequences = {name: SeededRandom(seed).take(8) for name, seed in rng.LAYER_SEEDS.items()}
    for a, b in itertools.combinations(sequences, 2):
        assert sequences[a] != sequences[b], f"{a} and {b} produced the same stream"


def test_layer_seed_constants():
    assert rng.BACKGROUND_SEED == 0xDECAFBAD
    assert rng.COOKIE_SPECKLE_SEED == 0x0DDC0FF3
    assert rng.EMBOSS_SEED == 0xABCDDCBA
    assert rng.CRUMB_SEED == 0xFEEDFACE


# ============================================================================
# API
# ============================================================================

def test_iteration_matches_take():
    it = iter(SeededRandom(99))
    assert list(itertools.islice(it, 20)) == SeededRandom(99).take(20)


def test_take_zero_and_negative():
    r = SeededRandom(5)
    assert r.take(0) == []
    with pytest.raises(ValueError, match="negative"):
        r.take(-1)


def test_seed_masked_to_32_bits():
    assert SeededRandom(-1).seed == 0xFFFFFFFF
    assert SeededRandom(2 ** 32 + 7).take(10) == SeededRandom(7).take(10)


@pytest.mark.parametrize("bad_seed", [1.5, "123", None, True])
def test_rejects_non_int_seed(bad_seed):
    with pytest.raises(TypeError):
        SeededRandom(bad_seed)


def test_repr_shows_seed():
    assert "0xDECAFBAD" in repr(SeededRandom(rng.BACKGROUND_SEED))
