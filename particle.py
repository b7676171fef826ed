# particle.py
"""
Manages the state of all particles in the simulation.

This module defines the ParticleSystem class, which is responsible for
initializing and storing particle data (position, velocity, type)
in efficient NumPy arrays.
"""
import logging
import numpy as np
from boundary import BoundaryPolicy
from constants import FLOAT_DTYPE, TYPE_DTYPE

# --- Data Contracts ---
#
# class ParticleSystem:
#   - __init__(self, positions, velocities, types):
#     - Inputs: (N, 2), (N, 2) and (N,) array-likes.
#     - Side Effects: Copies them into contiguous arrays of the engine dtypes.
#     - Invariants:
#       - self.positions is a NumPy array of shape (N, 2) of dtype float32.
#       - self.velocities is a NumPy array of shape (N, 2) of dtype float32.
#       - self.types is a NumPy array of shape (N,) of dtype int32.
#       - N never changes for the lifetime of the system.
#
#   - spawn(count, num_types, boundary, rng) -> ParticleSystem:
#     - Positions come from boundary.initial_sample, velocities are zero,
#       types are uniform over [0, num_types).


class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, positions, velocities, types):
        self.positions = np.ascontiguousarray(positions, dtype=FLOAT_DTYPE).reshape(-1, 2)
        self.velocities = np.ascontiguousarray(velocities, dtype=FLOAT_DTYPE).reshape(-1, 2)
        self.types = np.ascontiguousarray(types, dtype=TYPE_DTYPE).reshape(-1)

        count = self.positions.shape[0]
        if self.velocities.shape[0] != count or self.types.shape[0] != count:
            msg = (
                f"Particle arrays disagree on population: positions {self.positions.shape}, "
                f"velocities {self.velocities.shape}, types {self.types.shape}."
            )
            logging.critical(msg)
            raise ValueError(msg)

    @classmethod
    def spawn(cls, count: int, num_types: int, boundary: BoundaryPolicy,
              rng: np.random.Generator) -> "ParticleSystem":
        """
        Creates a fresh population.

        Args:
            count (int): Number of particles.
            num_types (int): Types are drawn uniformly from [0, num_types).
            boundary (BoundaryPolicy): Decides the initial position distribution.
            rng (np.random.Generator): Random source for positions and types.
        """
        if count < 0:
            msg = f"Configuration error: population must be non-negative, got {count}."
            logging.critical(msg)
            raise ValueError(msg)

        positions = boundary.initial_sample(rng, count)
        velocities = np.zeros((count, 2), dtype=FLOAT_DTYPE)
        types = rng.integers(
            low=0,
            high=num_types,
            size=count,
            dtype=TYPE_DTYPE
        )
        system = cls(positions, velocities, types)

        logging.info(
            f"ParticleSystem initialized with {count} "
            f"particles of {num_types} types."
        )
        logging.debug(
            f"Particle data arrays created. "
            f"Positions shape: {system.positions.shape}, "
            f"Velocities shape: {system.velocities.shape}, "
            f"Types shape: {system.types.shape}"
        )
        return system

    @property
    def particle_count(self) -> int:
        return self.positions.shape[0]
