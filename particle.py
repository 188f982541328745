# particle.py

from dataclasses import dataclass


@dataclass(frozen=True)
class Particle:
    """
    Snapshot of a single particle, read from the ParticleSystem arrays.

    The live state is stored as a Structure of Arrays inside ParticleSystem;
    this record is only a convenient, immutable view for collaborators and
    tests. home_x/home_y are fixed when the particle is created.
    """
    x: float
    y: float
    vx: float
    vy: float
    home_x: float
    home_y: float
    hue: float
    age: int

    def distance_to_home(self) -> float:
        dx = self.home_x - self.x
        dy = self.home_y - self.y
        return (dx * dx + dy * dy) ** 0.5
