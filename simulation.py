# simulation.py

import logging
import time
from threading import Lock
from typing import Iterable

import numpy as np

import constants
from particle_system import ParticleSystem
from well_tracker import InputId, InputPoint, WellListener, WellTracker

logger = logging.getLogger("gravity_sandbox")


class Simulation:
    """
    Explicit simulation context: one well tracker and one particle population.

    Every mutation goes through this object and is serialised by a single
    lock, so input handling from another thread can never interleave with a
    tick, a population reset or a resize.

    Data Contract:
    - Inputs:
        - config (dict): The 'simulation' section of the config file.
        - rng (np.random.Generator): Seeded source for scatter and noise.
        - bounds (tuple): Initial (width, height) of the canvas.
        - clock (callable): Time source in seconds for press durations.
        - listeners (iterable of WellListener): Well lifecycle receivers.
    - Outputs: Read-only access through `particles` and `wells()`.
    - Side Effects: Listener callbacks run while the lock is held.
    """
    def __init__(self, config: dict, rng: np.random.Generator, bounds: tuple, clock=time.monotonic, listeners: Iterable[WellListener] = ()):
        self.config = config
        self.lock = Lock()
        self.tracker = WellTracker(config, clock=clock, listeners=listeners)
        self.particles = ParticleSystem(
            num_particles=config.get('particle_count', constants.DEFAULT_PARTICLE_COUNT),
            config=config,
            rng=rng,
            bounds=bounds,
        )

    @property
    def bounds(self) -> tuple:
        return tuple(float(v) for v in self.particles.bounds)

    def wells(self):
        return self.tracker.current_wells()

    def begin_input(self, input_id: InputId, timestamp: float = None):
        with self.lock:
            self.tracker.begin_input(input_id, timestamp)

    def end_input(self, input_id: InputId):
        with self.lock:
            self.tracker.end_input(input_id)

    def reconcile(self, active_inputs: Iterable[InputPoint], now: float = None) -> list:
        with self.lock:
            return self.tracker.reconcile(active_inputs, now)

    def update_pointer(self, pressed: bool, x: float, y: float, now: float = None):
        with self.lock:
            return self.tracker.update_pointer(pressed, x, y, now)

    def tick(self):
        with self.lock:
            self.particles.update(self.tracker.current_wells())

    def set_particle_count(self, count: int):
        with self.lock:
            logger.info(f"Particle count preset selected: {count}")
            self.particles.reset(count)

    def resize(self, bounds: tuple):
        with self.lock:
            self.particles.resize(bounds)
