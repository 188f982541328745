import numpy as np
import pytest

from idle_noise import PerlinNoise


def test_samples_stay_in_unit_interval(rng):
    noise = PerlinNoise(rng)
    coords = np.linspace(-50.0, 50.0, 37)
    values = [noise.sample(x, y, z) for x in coords for y in coords[::4] for z in (0.0, 0.37, 12.5)]
    assert min(values) >= 0.0
    assert max(values) <= 1.0
    # Not a constant field
    assert max(values) - min(values) > 0.1


def test_same_seed_same_field():
    a = PerlinNoise(np.random.default_rng(5))
    b = PerlinNoise(np.random.default_rng(5))
    for x, y, z in [(0.1, 0.2, 0.3), (12.7, -3.3, 0.0), (1e3, 2e3, 4.5)]:
        assert a.sample(x, y, z) == b.sample(x, y, z)


def test_different_seeds_give_different_fields():
    a = PerlinNoise(np.random.default_rng(1))
    b = PerlinNoise(np.random.default_rng(2))
    points = [(x * 0.37, x * 0.11, 0.5) for x in range(20)]
    assert any(a.sample(*p) != b.sample(*p) for p in points)


def test_field_is_smooth(rng):
    noise = PerlinNoise(rng)
    base = noise.sample(3.3, 4.4, 0.2)
    assert abs(noise.sample(3.3 + 1e-4, 4.4, 0.2) - base) < 1e-2
    assert abs(noise.sample(3.3, 4.4, 0.2 + 1e-4) - base) < 1e-2


def test_integer_lattice_points_sit_at_midpoint(rng):
    # Gradient noise vanishes on lattice points for every octave
    noise = PerlinNoise(rng)
    assert noise.sample(3.0, 7.0, 1.0) == pytest.approx(0.5)


def test_octaves_must_be_positive(rng):
    with pytest.raises(ValueError):
        PerlinNoise(rng, octaves=0)
