# gpu.py
"""
GPU execution backend built on numba.cuda.

The device keeps two generations of the position and velocity buffers.
Each tick launches one thread per particle; a thread reads only the
previous generation and writes only its own slot of the current one, so
no thread can observe another's partial update. The generations swap
roles before the next launch.
"""
import logging
import numpy as np
from numba import cuda
from boundary import BoundaryPolicy, clamp_component, close_seam, wrap_component
from cache import TypePairCache
from constants import THREADS_PER_BLOCK
from kernel import pair_force
from particle import ParticleSystem

# --- Data Contracts ---
#
# class GpuBackend:
#   - __init__(self, threads_per_block: int = THREADS_PER_BLOCK):
#     - Raises RuntimeError when no CUDA device is available.
#   - attach(...): Uploads particle state into generation 0 and the cache
#     tables and types into read-only device arrays.
#   - advance(self) -> None:
#     - One kernel launch, a device-wide synchronize, a generation swap,
#       then a copy of the new generation back into the host arrays.

_pair_force_device = cuda.jit(device=True)(pair_force)
_wrap_component_device = cuda.jit(device=True)(wrap_component)
_clamp_component_device = cuda.jit(device=True)(clamp_component)
_close_seam_device = cuda.jit(device=True)(close_seam)


@cuda.jit
def _tick_kernel(pos_prev, vel_prev, pos_cur, vel_cur, types,
                 min_r, max_r, attraction, num_types,
                 kind, extent, wrap_extent, friction):
    i = cuda.grid(1)
    particle_count = pos_prev.shape[0]
    if i >= particle_count:
        return

    px = pos_prev[i, 0]
    py = pos_prev[i, 1]
    row = types[i] * num_types
    fx = 0.0
    fy = 0.0
    for j in range(particle_count):
        if i == j:
            continue
        dx = _wrap_component_device(pos_prev[j, 0] - px, wrap_extent)
        dy = _wrap_component_device(pos_prev[j, 1] - py, wrap_extent)
        k = row + types[j]
        gx, gy = _pair_force_device(dx, dy, min_r[k], max_r[k], attraction[k])
        fx += gx
        fy += gy

    vx = vel_prev[i, 0] + fx
    vy = vel_prev[i, 1] + fy
    x = px + vx
    y = py + vy
    vx *= 1.0 - friction
    vy *= 1.0 - friction
    x, vx = _clamp_component_device(x, vx, kind, extent)
    y, vy = _clamp_component_device(y, vy, kind, extent)

    pos_cur[i, 0] = x
    pos_cur[i, 1] = y
    pos_cur[i, 0] = _close_seam_device(pos_cur[i, 0], kind, extent)
    pos_cur[i, 1] = _close_seam_device(pos_cur[i, 1], kind, extent)
    vel_cur[i, 0] = vx
    vel_cur[i, 1] = vy


class GpuBackend:
    """
    Compute-parallel CUDA execution with double-buffered particle state.
    """
    name = "gpu"

    def __init__(self, threads_per_block: int = THREADS_PER_BLOCK):
        if not cuda.is_available():
            msg = "GPU backend requested but no CUDA device is available."
            logging.critical(msg)
            raise RuntimeError(msg)
        if threads_per_block <= 0:
            msg = f"Configuration error: threads_per_block must be positive, got {threads_per_block}."
            logging.critical(msg)
            raise ValueError(msg)
        self.threads_per_block = threads_per_block
        self.particles = None
        self.boundary = None
        self.friction = 0.0
        self.num_types = 0
        self._positions = None
        self._velocities = None
        self._current = 0

    def attach(self, particles: ParticleSystem, cache: TypePairCache,
               boundary: BoundaryPolicy, friction: float) -> None:
        self.particles = particles
        self.boundary = boundary
        self.friction = float(friction)
        self.num_types = cache.num_types

        self._positions = [cuda.to_device(particles.positions), cuda.device_array_like(particles.positions)]
        self._velocities = [cuda.to_device(particles.velocities), cuda.device_array_like(particles.velocities)]
        self._current = 0
        self._types = cuda.to_device(particles.types)
        self._min_r = cuda.to_device(np.ascontiguousarray(cache.min_r))
        self._max_r = cuda.to_device(np.ascontiguousarray(cache.max_r))
        self._attraction = cuda.to_device(np.ascontiguousarray(cache.attraction))

        count = particles.particle_count
        self._blocks = max(1, (count + self.threads_per_block - 1) // self.threads_per_block)
        logging.info(f"GPU backend attached: {count} particles, {self._blocks} blocks of {self.threads_per_block} threads.")

    def advance(self) -> None:
        if self.particles.particle_count == 0:
            return
        prev = self._current
        cur = 1 - prev
        _tick_kernel[self._blocks, self.threads_per_block](
            self._positions[prev], self._velocities[prev],
            self._positions[cur], self._velocities[cur],
            self._types,
            self._min_r, self._max_r, self._attraction, self.num_types,
            self.boundary.kind, self.boundary.extent, self.boundary.wrap_extent,
            self.friction
        )
        cuda.synchronize()
        self._current = cur

        # Host arrays mirror the newest generation between ticks
        self._positions[cur].copy_to_host(self.particles.positions)
        self._velocities[cur].copy_to_host(self.particles.velocities)
