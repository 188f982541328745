import logging

import numpy as np
import pytest


class FakeClock:
    """Manually advanced time source (seconds)."""
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock(start=10.0)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def sim_config():
    """'simulation' section mirroring config.json, idle noise disabled."""
    return {
        "particle_count": 600,
        "max_wells": 6,
        "pointer_strength": 3.0,
        "softening": 400.0,
        "radial_force_scale": 150.0,
        "swirl_scale": 40.0,
        "swirl_factor": 0.45,
        "home_spring_k": 0.0002,
        "velocity_damping": 0.995,
        "max_component_speed": 2.0,
        "axis_damping_ratio": 1.6,
        "axis_damping_factor": 0.55,
        "idle_noise_scale": 0.002,
        "idle_jitter": 0.0,
    }


@pytest.fixture
def app_logger():
    """The application logger, restored to a propagating, handler-free state afterwards."""
    logger = logging.getLogger("gravity_sandbox")
    yield logger
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
