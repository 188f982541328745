# force_field.py

import numpy as np
import numba
from collections.abc import Mapping

import constants

# Column layout of the packed well array handed to the JIT kernels.
WELL_X, WELL_Y, WELL_STRENGTH = 0, 1, 2

@numba.jit(nopython=True, fastmath=True)
def well_acceleration_jit(px, py, wells, softening, radial_scale, swirl_scale, swirl_factor):
    """
    Sums the acceleration every well imparts on a particle at (px, py).

    Each well contributes a radial pull of magnitude strength / d2 along the
    softened unit direction, plus a swirl term along the direction rotated by
    90 degrees. d2 includes the softening constant, so a well sitting exactly
    on the particle yields a finite (zero) force.
    """
    ax = 0.0
    ay = 0.0
    for k in range(wells.shape[0]):
        dx = wells[k, 0] - px
        dy = wells[k, 1] - py
        d2 = dx * dx + dy * dy + softening
        inv_dist = 1.0 / np.sqrt(d2)
        dir_x = dx * inv_dist
        dir_y = dy * inv_dist
        perp_x = -dir_y
        perp_y = dir_x
        force = wells[k, 2] / d2
        ax += force * dir_x * radial_scale + force * perp_x * swirl_scale * swirl_factor
        ay += force * dir_y * radial_scale + force * perp_y * swirl_scale * swirl_factor
    return ax, ay


def wells_to_array(wells) -> np.ndarray:
    """
    Packs wells into a (k, 3) float array of [x, y, strength] rows.

    Accepts a mapping of id -> well (the tracker's view), any iterable of
    objects exposing x/y/strength, or an already packed array.
    """
    if isinstance(wells, np.ndarray):
        return np.ascontiguousarray(wells, dtype=np.float64).reshape(-1, 3)
    if isinstance(wells, Mapping):
        wells = wells.values()
    rows = [(w.x, w.y, w.strength) for w in wells]
    if not rows:
        return np.zeros((0, 3), dtype=np.float64)
    return np.array(rows, dtype=np.float64)


class ForceField:
    """
    Pure acceleration model for the gravity wells.

    Data Contract:
    - Inputs: config (dict) - the 'simulation' section; missing keys fall back
      to the defaults in constants.py.
    - Outputs: acceleration_at() returns an (ax, ay) tuple of floats.
    - Side Effects: None.
    - Invariants: Contributions of multiple wells superpose linearly.
    """
    def __init__(self, config: dict = None):
        config = config or {}
        self.softening = float(config.get('softening', constants.SOFTENING))
        self.radial_scale = float(config.get('radial_force_scale', constants.RADIAL_FORCE_SCALE))
        self.swirl_scale = float(config.get('swirl_scale', constants.SWIRL_SCALE))
        self.swirl_factor = float(config.get('swirl_factor', constants.SWIRL_FACTOR))
        if self.softening <= 0:
            raise ValueError(f"softening must be positive, got {self.softening}")

    def acceleration_at(self, position, wells) -> tuple:
        well_array = wells_to_array(wells)
        ax, ay = well_acceleration_jit(
            float(position[0]),
            float(position[1]),
            well_array,
            self.softening,
            self.radial_scale,
            self.swirl_scale,
            self.swirl_factor,
        )
        return float(ax), float(ay)
