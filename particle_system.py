# particle_system.py

import numpy as np
import pygame
import logging
import numba

import constants
from force_field import well_acceleration_jit, wells_to_array
from idle_noise import PerlinNoise, sample_noise_jit
from particle import Particle

logger = logging.getLogger("gravity_sandbox")

# --- JIT-Compiled Physics Functions ---
# Kept outside the ParticleSystem class and operating only on NumPy arrays and
# scalars, as required by Numba's nopython mode.

@numba.jit(nopython=True)
def _step_particles_jit(positions, velocities, homes, ages, wells, perm, octaves, falloff,
                        tick, width, height, noise_scale, noise_time_scale, idle_jitter,
                        spring_k, home_threshold_sq, softening, radial_scale, swirl_scale,
                        swirl_factor, damping, max_speed, axis_ratio, axis_factor, axis_min_speed):
    """
    Advances every particle by one tick, in place.

    Idle drift (noise jitter + home spring) and well forces are mutually
    exclusive: the idle terms apply only when the well array is empty.
    """
    num_particles = positions.shape[0]
    idle = wells.shape[0] == 0
    t = tick * noise_time_scale

    for i in range(num_particles):
        x = positions[i, 0]
        y = positions[i, 1]
        vx = velocities[i, 0]
        vy = velocities[i, 1]

        if idle:
            if idle_jitter > 0.0:
                n = sample_noise_jit(perm, x * noise_scale, y * noise_scale, t, octaves, falloff)
                jitter = (n * 2.0 - 1.0) * idle_jitter
                vx += jitter
                vy += jitter

            dxh = homes[i, 0] - x
            dyh = homes[i, 1] - y
            if dxh * dxh + dyh * dyh > home_threshold_sq:
                vx += dxh * spring_k
                vy += dyh * spring_k
        else:
            ax, ay = well_acceleration_jit(x, y, wells, softening, radial_scale, swirl_scale, swirl_factor)
            vx += ax
            vy += ay

        vx *= damping
        vy *= damping

        # Per-component clamp
        if vx > max_speed:
            vx = max_speed
        elif vx < -max_speed:
            vx = -max_speed
        if vy > max_speed:
            vy = max_speed
        elif vy < -max_speed:
            vy = -max_speed

        # Axis-dominance damping (both tests use the clamped magnitudes)
        avx = abs(vx)
        avy = abs(vy)
        if avx > avy * axis_ratio and avx > axis_min_speed:
            vx *= axis_factor
        if avy > avx * axis_ratio and avy > axis_min_speed:
            vy *= axis_factor

        x += vx
        y += vy

        # Toroidal wrap. Sequential checks: x + width can round up to width.
        if x < 0.0:
            x += width
        if x >= width:
            x -= width
        if y < 0.0:
            y += height
        if y >= height:
            y -= height

        positions[i, 0] = x
        positions[i, 1] = y
        velocities[i, 0] = vx
        velocities[i, 1] = vy
        ages[i] += 1


class ParticleSystem:
    """
    Manages the state and physics of all particles in the simulation using
    NumPy arrays (Structure of Arrays) and a Numba-compiled step kernel.

    Data Contract:
    - Inputs:
        - num_particles (int): The number of particles to simulate.
        - config (dict): The 'simulation' section of the config file.
        - rng (np.random.Generator): The master seeded random number generator.
        - bounds (tuple): The (width, height) of the simulation area.
        - noise (PerlinNoise, optional): Idle noise source; built from rng if omitted.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: Manages the lifecycle of all particle data.
    - Invariants:
        - All internal arrays have length num_particles.
        - After every update(): |vx|, |vy| <= max_component_speed and
          0 <= x < width, 0 <= y < height.
        - homes never change after a particle is created.
    """
    def __init__(self, num_particles: int, config: dict, rng: np.random.Generator, bounds: tuple, noise: PerlinNoise = None):
        self.config = config
        self.rng = rng
        self.noise = noise if noise is not None else PerlinNoise(rng)
        self.tick = 0

        self.noise_scale = float(config.get('idle_noise_scale', constants.IDLE_NOISE_SCALE))
        self.noise_time_scale = float(config.get('idle_noise_time_scale', constants.IDLE_NOISE_TIME_SCALE))
        self.idle_jitter = float(config.get('idle_jitter', constants.IDLE_JITTER))
        self.spring_k = float(config.get('home_spring_k', constants.HOME_SPRING_K))
        self.home_threshold_sq = float(config.get('home_threshold_sq', constants.HOME_THRESHOLD_SQ))
        self.softening = float(config.get('softening', constants.SOFTENING))
        self.radial_scale = float(config.get('radial_force_scale', constants.RADIAL_FORCE_SCALE))
        self.swirl_scale = float(config.get('swirl_scale', constants.SWIRL_SCALE))
        self.swirl_factor = float(config.get('swirl_factor', constants.SWIRL_FACTOR))
        self.damping = float(config.get('velocity_damping', constants.VELOCITY_DAMPING))
        self.max_speed = float(config.get('max_component_speed', constants.MAX_COMPONENT_SPEED))
        self.axis_ratio = float(config.get('axis_damping_ratio', constants.AXIS_DAMPING_RATIO))
        self.axis_factor = float(config.get('axis_damping_factor', constants.AXIS_DAMPING_FACTOR))
        self.axis_min_speed = float(config.get('axis_damping_min_speed', constants.AXIS_DAMPING_MIN_SPEED))

        if self.softening <= 0:
            raise ValueError(f"softening must be positive, got {self.softening}")

        self.bounds = self._validate_bounds(bounds)
        self.reset(num_particles)

    @staticmethod
    def _validate_bounds(bounds) -> np.ndarray:
        bounds = np.array(bounds, dtype=float)
        if bounds.shape != (2,) or np.any(bounds <= 0):
            raise ValueError(f"bounds must be a positive (width, height), got {bounds}")
        return bounds

    def reset(self, num_particles: int = None):
        """
        Replaces the whole population. Must be called between ticks.
        Homes are the freshly scattered positions.
        """
        if num_particles is None:
            num_particles = self.num_particles
        if num_particles < 0:
            raise ValueError(f"num_particles must be >= 0, got {num_particles}")
        self.num_particles = int(num_particles)

        lo, hi = constants.INITIAL_SPEED_RANGE
        self.positions = self.rng.random((self.num_particles, 2)) * self.bounds
        self.velocities = self.rng.uniform(lo, hi, (self.num_particles, 2))
        self.homes = self.positions.copy()
        self.hues = self.rng.uniform(*constants.HUE_RANGE, self.num_particles)
        self.ages = self.rng.integers(*constants.INITIAL_AGE_RANGE, self.num_particles).astype(np.int64)
        self._colors = None

        logger.info(f"ParticleSystem populated with {self.num_particles} particles over {self.bounds[0]:.0f}x{self.bounds[1]:.0f}.")

    def resize(self, bounds: tuple):
        """
        Rescales live positions to new canvas bounds. Must be called between ticks.

        Home positions are left unchanged: after a resize
        the idle spring still pulls toward the pre-resize layout.
        """
        new_bounds = self._validate_bounds(bounds)
        scale = new_bounds / self.bounds
        self.positions *= scale
        self.bounds = new_bounds
        # Guard against x * scale landing exactly on the new edge
        np.mod(self.positions, self.bounds, out=self.positions)
        logger.info(f"Canvas resized to {new_bounds[0]:.0f}x{new_bounds[1]:.0f} (scale {scale[0]:.3f}, {scale[1]:.3f}); homes unchanged.")

    def update(self, wells=()):
        """Runs one simulation tick against the given wells."""
        well_array = wells_to_array(wells)
        _step_particles_jit(
            self.positions,
            self.velocities,
            self.homes,
            self.ages,
            well_array,
            self.noise.perm,
            self.noise.octaves,
            self.noise.falloff,
            float(self.tick),
            float(self.bounds[0]),
            float(self.bounds[1]),
            self.noise_scale,
            self.noise_time_scale,
            self.idle_jitter,
            self.spring_k,
            self.home_threshold_sq,
            self.softening,
            self.radial_scale,
            self.swirl_scale,
            self.swirl_factor,
            self.damping,
            self.max_speed,
            self.axis_ratio,
            self.axis_factor,
            self.axis_min_speed,
        )
        self.tick += 1

    def __len__(self):
        return self.num_particles

    def particle(self, index: int) -> Particle:
        return Particle(
            x=float(self.positions[index, 0]),
            y=float(self.positions[index, 1]),
            vx=float(self.velocities[index, 0]),
            vy=float(self.velocities[index, 1]),
            home_x=float(self.homes[index, 0]),
            home_y=float(self.homes[index, 1]),
            hue=float(self.hues[index]),
            age=int(self.ages[index]),
        )

    def get_mean_speed(self) -> float:
        if self.num_particles == 0:
            return 0.0
        return float(np.mean(np.sqrt(np.sum(self.velocities**2, axis=1))))

    def get_mean_home_distance(self) -> float:
        if self.num_particles == 0:
            return 0.0
        return float(np.mean(np.sqrt(np.sum((self.homes - self.positions)**2, axis=1))))

    def get_mean_distance_to(self, point) -> float:
        if self.num_particles == 0:
            return 0.0
        diffs = self.positions - np.asarray(point, dtype=float)
        return float(np.mean(np.sqrt(np.sum(diffs**2, axis=1))))

    def _particle_colors(self):
        # Hues are fixed per population, so colors are built once per reset
        if self._colors is None:
            colors = []
            for hue in self.hues:
                color = pygame.Color(0, 0, 0)
                color.hsva = (float(hue) % 360.0, constants.PARTICLE_SATURATION, constants.PARTICLE_VALUE, constants.PARTICLE_ALPHA)
                colors.append(color)
            self._colors = colors
        return self._colors

    def draw(self, screen: pygame.Surface):
        """Draws each particle as a small fixed-radius dot tinted by its hue."""
        colors = self._particle_colors()
        for i in range(self.num_particles):
            pygame.draw.circle(
                screen,
                colors[i],
                (int(self.positions[i, 0]), int(self.positions[i, 1])),
                max(1, int(round(constants.PARTICLE_RADIUS))),
            )
