# simulation.py
"""
Handles the core simulation state and tick orchestration.

This module defines the Simulation class, which owns the particle state,
the ruleset, its type-pair cache and the boundary policy, and advances
the whole system one tick at a time through an execution backend.
"""
import logging
import numpy as np
from typing import Optional
from backends import make_backend
from boundary import BoundaryPolicy
from cache import TypePairCache
from particle import ParticleSystem
from ruleset import RuleSet

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, population: int, ruleset: RuleSet, boundary: BoundaryPolicy,
#              rng=None, backend="cpu", strict=False):
#     - Inputs:
#       - population: Number of particles, fixed for the simulation's life.
#       - ruleset: Immutable interaction parameters, owned from here on.
#       - boundary: Spatial topology; bounded policies carry their extent.
#       - rng: numpy Generator for initial placement and types.
#       - backend: 'cpu', 'gpu' or an already constructed backend object.
#       - strict: Refuse rulesets with degenerate type pairs.
#     - Side Effects: Spawns particles, builds the type-pair cache once.
#
#   - step(self) -> None:
#     - Side Effects: Evaluate, integrate and boundary-enforce, in that
#       order, then increments the tick counter.
#     - Invariants: Particle count remains constant. A tick is atomic:
#       no caller ever sees a partially updated state.
#
#   - positions / velocities / types -> np.ndarray:
#     - Read-only views. Valid between ticks only; they reflect the state
#       after the most recent step.


def _read_only(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.setflags(write=False)
    return view


def _require_policy(boundary) -> None:
    if not isinstance(boundary, BoundaryPolicy):
        msg = f"Configuration error: expected a BoundaryPolicy, got {boundary!r}."
        logging.critical(msg)
        raise ValueError(msg)


class Simulation:
    """
    Owns the particle array and advances it one tick at a time.
    """
    def __init__(self, population: int, ruleset: RuleSet, boundary: BoundaryPolicy,
                 rng: Optional[np.random.Generator] = None, backend="cpu", strict: bool = False):
        """
        Initializes the simulation environment.

        Args:
            population (int): The number of particles to create.
            ruleset (RuleSet): The interaction parameters.
            boundary (BoundaryPolicy): The domain topology.
            rng (np.random.Generator, optional): Random source for spawning.
            backend: Backend name or instance.
            strict (bool): Reject degenerate rulesets instead of warning.
        """
        _require_policy(boundary)
        if rng is None:
            rng = np.random.default_rng()
        particles = ParticleSystem.spawn(population, ruleset.num_types, boundary, rng)
        self._setup(particles, ruleset, boundary, backend, strict, tick=0)

    @classmethod
    def from_state(cls, particles: ParticleSystem, ruleset: RuleSet, boundary: BoundaryPolicy,
                   tick: int = 0, backend="cpu", strict: bool = False) -> "Simulation":
        """
        Resumes a simulation from previously captured state.
        """
        if particles.types.size:
            low = int(particles.types.min())
            high = int(particles.types.max())
            if low < 0 or high >= ruleset.num_types:
                bad = low if low < 0 else high
                msg = (
                    f"Configuration error: particle type {bad} has no "
                    f"rules in a ruleset of {ruleset.num_types} types."
                )
                logging.critical(msg)
                raise ValueError(msg)
        simulation = cls.__new__(cls)
        simulation._setup(particles, ruleset, boundary, backend, strict, tick=tick)
        return simulation

    def _setup(self, particles: ParticleSystem, ruleset: RuleSet, boundary: BoundaryPolicy,
               backend, strict: bool, tick: int) -> None:
        _require_policy(boundary)

        # Rule 7: Enforce data contracts. Validate config on initialization.
        degenerate = ruleset.degenerate_pairs()
        if degenerate:
            msg = (
                f"Ruleset has {len(degenerate)} type pair(s) with min_r >= max_r: "
                f"{degenerate}. Forces for these pairs may become non-finite."
            )
            if strict:
                logging.critical(msg)
                raise ValueError(msg)
            logging.warning(msg)

        self._particles = particles
        self._ruleset = ruleset
        self._boundary = boundary
        self._cache = TypePairCache.from_ruleset(ruleset)
        self._tick = int(tick)

        self._backend = make_backend(backend) if isinstance(backend, str) else backend
        self._backend.attach(self._particles, self._cache, self._boundary, ruleset.friction)

        logging.info(
            f"Simulation initialized: {particles.particle_count} particles, "
            f"{ruleset.num_types} types, boundary {boundary!r}, "
            f"backend {self._backend.name}."
        )

    def step(self) -> None:
        """
        Executes one time step of the simulation.
        """
        self._backend.advance()
        self._tick += 1

    def run(self, steps: int) -> None:
        """Executes the given number of ticks back to back."""
        for _ in range(steps):
            self.step()

    # --- Read accessors ---

    @property
    def positions(self) -> np.ndarray:
        return _read_only(self._particles.positions)

    @property
    def velocities(self) -> np.ndarray:
        return _read_only(self._particles.velocities)

    @property
    def types(self) -> np.ndarray:
        return _read_only(self._particles.types)

    @property
    def population(self) -> int:
        return self._particles.particle_count

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def ruleset(self) -> RuleSet:
        return self._ruleset

    @property
    def boundary(self) -> BoundaryPolicy:
        return self._boundary

    @property
    def cache(self) -> TypePairCache:
        return self._cache

    @property
    def backend_name(self) -> str:
        return self._backend.name
