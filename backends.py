# backends.py
"""
Execution backends that advance the particle state by one tick.

Every backend honours the same discipline: the evaluate phase reads a
frozen snapshot of positions and writes only to a separate output, and
nothing in that snapshot is mutated until evaluation has finished for
every particle. The CPU backend does this with a freshly allocated force
array filled by a parallel numba loop.
"""
import logging
import numpy as np
from numba import jit, prange
from boundary import BoundaryPolicy, wrap_component_jit
from cache import TypePairCache
from constants import FLOAT_DTYPE
from kernel import pair_force_jit
from particle import ParticleSystem

# --- Data Contracts ---
#
# compute_forces(positions, types, cache, wrap_extent) -> np.ndarray:
#   - Inputs: (N, 2) positions, (N,) types, a TypePairCache and the
#     policy's wrap_extent.
#   - Outputs: A new (N, 2) float32 array, row i being the summed force
#     on particle i from every other particle.
#   - Invariants: Never writes to positions or types.
#
# class CpuBackend / GpuBackend:
#   - attach(self, particles, cache, boundary, friction) -> None:
#     - Binds the backend to one simulation's state. Called once.
#   - advance(self) -> None:
#     - Applies exactly one tick: evaluate, integrate, boundary enforce.
#     - On return the host-side ParticleSystem arrays hold the new state.


@jit(nopython=True, parallel=True)
def _accumulate_forces(positions, types, min_r, max_r, attraction, num_types, wrap_extent, out):
    """
    Numba-jitted brute-force O(n^2) evaluation.

    One parallel iteration per particle; each writes only its own row of
    out and reads positions, which nobody writes during this call.
    """
    particle_count = positions.shape[0]
    for i in prange(particle_count):
        px = positions[i, 0]
        py = positions[i, 1]
        row = types[i] * num_types
        fx = 0.0
        fy = 0.0
        for j in range(particle_count):
            if i == j:
                continue
            dx = wrap_component_jit(positions[j, 0] - px, wrap_extent)
            dy = wrap_component_jit(positions[j, 1] - py, wrap_extent)
            k = row + types[j]
            gx, gy = pair_force_jit(dx, dy, min_r[k], max_r[k], attraction[k])
            fx += gx
            fy += gy
        out[i, 0] = fx
        out[i, 1] = fy


def compute_forces(positions: np.ndarray, types: np.ndarray, cache: TypePairCache,
                   wrap_extent: float) -> np.ndarray:
    """Evaluate phase: summed pairwise force on every particle."""
    out = np.zeros_like(positions, dtype=FLOAT_DTYPE)
    _accumulate_forces(
        positions, types,
        cache.min_r, cache.max_r, cache.attraction, cache.num_types,
        float(wrap_extent), out
    )
    return out


class CpuBackend:
    """
    Data-parallel CPU execution using numba's threading layer.
    """
    name = "cpu"

    def __init__(self):
        self.particles = None
        self.cache = None
        self.boundary = None
        self.friction = 0.0

    def attach(self, particles: ParticleSystem, cache: TypePairCache,
               boundary: BoundaryPolicy, friction: float) -> None:
        self.particles = particles
        self.cache = cache
        self.boundary = boundary
        self.friction = FLOAT_DTYPE(friction)
        logging.info(f"CPU backend attached to {particles.particle_count} particles.")

    def advance(self) -> None:
        particles = self.particles

        # 1. Evaluate against the frozen positions into a separate buffer
        total_force = compute_forces(
            particles.positions, particles.types, self.cache, self.boundary.wrap_extent
        )

        # 2. Forces accumulate into velocity as an impulse
        particles.velocities += total_force

        # 3. Move, then damp
        particles.positions += particles.velocities
        particles.velocities *= (1.0 - self.friction)

        # 4. Handle boundary conditions
        self.boundary.clamp_after_step(particles.positions, particles.velocities)


def make_backend(name: str):
    """
    Creates a backend by name: 'cpu' or 'gpu'.

    The GPU backend is imported lazily so that CUDA is only touched when
    it is explicitly requested.
    """
    key = str(name).lower()
    if key == "cpu":
        return CpuBackend()
    if key == "gpu":
        from gpu import GpuBackend
        return GpuBackend()
    msg = f"Unknown backend '{name}'. Expected 'cpu' or 'gpu'."
    logging.critical(msg)
    raise ValueError(msg)
