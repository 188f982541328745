# idle_noise.py

import numpy as np
import numba
import logging

import constants

logger = logging.getLogger("gravity_sandbox")

# --- JIT-Compiled Noise Functions ---
# Improved Perlin noise (fade 6t^5 - 15t^4 + 10t^3, 12 gradient directions).
# The permutation table is passed in so the particle step kernel can sample
# noise inline without touching Python objects.

@numba.jit(nopython=True)
def _fade_jit(t):
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)

@numba.jit(nopython=True)
def _lerp_jit(a, b, t):
    return a + t * (b - a)

@numba.jit(nopython=True)
def _grad3_jit(hash_val, x, y, z):
    h = hash_val & 15
    u = x if h < 8 else y
    if h < 4:
        v = y
    elif h == 12 or h == 14:
        v = x
    else:
        v = z
    return (u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v)

@numba.jit(nopython=True)
def _perlin3_jit(perm, x, y, z):
    """Single octave of 3D Perlin noise, roughly in [-1, 1]."""
    fx = np.floor(x)
    fy = np.floor(y)
    fz = np.floor(z)
    xi = int(fx) & 255
    yi = int(fy) & 255
    zi = int(fz) & 255
    x -= fx
    y -= fy
    z -= fz
    u = _fade_jit(x)
    v = _fade_jit(y)
    w = _fade_jit(z)

    a = perm[xi] + yi
    aa = perm[a] + zi
    ab = perm[a + 1] + zi
    b = perm[xi + 1] + yi
    ba = perm[b] + zi
    bb = perm[b + 1] + zi

    return _lerp_jit(
        _lerp_jit(
            _lerp_jit(_grad3_jit(perm[aa], x, y, z), _grad3_jit(perm[ba], x - 1.0, y, z), u),
            _lerp_jit(_grad3_jit(perm[ab], x, y - 1.0, z), _grad3_jit(perm[bb], x - 1.0, y - 1.0, z), u),
            v,
        ),
        _lerp_jit(
            _lerp_jit(_grad3_jit(perm[aa + 1], x, y, z - 1.0), _grad3_jit(perm[ba + 1], x - 1.0, y, z - 1.0), u),
            _lerp_jit(_grad3_jit(perm[ab + 1], x, y - 1.0, z - 1.0), _grad3_jit(perm[bb + 1], x - 1.0, y - 1.0, z - 1.0), u),
            v,
        ),
        w,
    )

@numba.jit(nopython=True)
def sample_noise_jit(perm, x, y, z, octaves, falloff):
    """
    Fractal sum of Perlin octaves, normalised and clipped to [0, 1].
    Each octave doubles the frequency and scales the amplitude by `falloff`.
    """
    total = 0.0
    norm = 0.0
    amp = 1.0
    freq = 1.0
    for _ in range(octaves):
        total += amp * _perlin3_jit(perm, x * freq, y * freq, z * freq)
        norm += amp
        amp *= falloff
        freq *= 2.0
    if norm > 0.0:
        total /= norm
    value = 0.5 * (total + 1.0)
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


class PerlinNoise:
    """
    Seeded, smooth, time-varying noise used for idle particle jitter.

    Data Contract:
    - Inputs:
        - rng (np.random.Generator): Source of the permutation table.
        - octaves (int): Number of summed octaves (>= 1).
        - falloff (float): Amplitude ratio between successive octaves.
    - Outputs: sample(x, y, z) -> float in [0, 1].
    - Invariants: Two instances built from generators with the same seed
      produce identical samples.
    """
    def __init__(self, rng: np.random.Generator, octaves: int = constants.NOISE_OCTAVES, falloff: float = constants.NOISE_FALLOFF):
        if octaves < 1:
            raise ValueError(f"octaves must be >= 1, got {octaves}")
        self.octaves = int(octaves)
        self.falloff = float(falloff)
        table = rng.permutation(256).astype(np.int64)
        # Doubled so lookups at index + 1 never wrap
        self.perm = np.concatenate([table, table])
        logger.debug(f"PerlinNoise created: octaves={self.octaves}, falloff={self.falloff}")

    def sample(self, x: float, y: float, z: float = 0.0) -> float:
        return sample_noise_jit(self.perm, float(x), float(y), float(z), self.octaves, self.falloff)
