# boundary.py
"""
Spatial topology of the simulated world.

A boundary policy decides three things: where particles start, how the
displacement between two particles is measured, and what happens to a
particle that leaves the domain after integration. Each policy defines
all three in one place; the stepper only calls through the interface.

The per-component rules are plain scalar functions so that the same
definition can be compiled for the CPU loop and for the GPU kernel.
"""
import logging
import math
import numpy as np
from numba import jit
from constants import FLOAT_DTYPE, OPEN_SPAWN_STD

# --- Data Contracts ---
#
# class BoundaryPolicy:
#   - initial_sample(self, rng: np.random.Generator, count: int) -> np.ndarray:
#     - Outputs: (count, 2) float32 positions.
#   - wrap_delta(self, delta: np.ndarray) -> np.ndarray:
#     - Inputs: Displacement(s) of shape (2,) or (N, 2).
#     - Outputs: The displacement measured under this topology.
#   - clamp_after_step(self, positions, velocities) -> None:
#     - Side Effects: Modifies both (N, 2) arrays in place.
#   - Properties:
#     - kind: OPEN, REFLECTIVE or PERIODIC (integer tag for kernels).
#     - extent: Half-width of the square domain, 0.0 when unbounded.
#     - wrap_extent: extent for Periodic, 0.0 otherwise. Compiled
#       kernels only correct displacements when it is positive.
#   - Invariants: Immutable. Bounded policies have 0 < extent < inf.

OPEN = 0
REFLECTIVE = 1
PERIODIC = 2


# --- Scalar rules (compiled for both backends) ---

def wrap_component(d, extent):
    """Shortest displacement along one axis of a torus of width 2 * extent."""
    if extent > 0.0:
        if d > extent:
            d -= 2.0 * extent
        elif d < -extent:
            d += 2.0 * extent
    return d


def clamp_component(x, v, kind, extent):
    """
    Post-integration rule for one axis, selected by policy tag.

    Periodic brings x back into [-extent, extent) with one correction of
    2 * extent; a particle that moved further than a full domain width in
    one tick is folded back with a remainder instead.
    Reflective pins x onto the wall it crossed and reverses v.
    """
    if kind == PERIODIC:
        width = 2.0 * extent
        if x < -extent:
            x += width
        elif x >= extent:
            x -= width
        if x < -extent or x >= extent:
            shifted = x + extent
            x = shifted - width * math.floor(shifted / width) - extent
    elif kind == REFLECTIVE:
        if x < -extent:
            x = -extent
            v = -v
        elif x >= extent:
            x = extent
            v = -v
    return x, v


def close_seam(stored, kind, extent):
    """Maps a stored periodic coordinate that rounded up onto extent back to -extent."""
    if kind == PERIODIC and stored >= extent:
        return -extent
    return stored


wrap_component_jit = jit(nopython=True)(wrap_component)
_clamp_component_jit = jit(nopython=True)(clamp_component)
_close_seam_jit = jit(nopython=True)(close_seam)


@jit(nopython=True)
def _clamp_all(positions, velocities, kind, extent):
    n = positions.shape[0]
    for i in range(n):
        for axis in range(2):
            x, v = _clamp_component_jit(positions[i, axis], velocities[i, axis], kind, extent)
            positions[i, axis] = x
            positions[i, axis] = _close_seam_jit(positions[i, axis], kind, extent)
            velocities[i, axis] = v


class BoundaryPolicy:
    """
    Base class for the closed set of boundary policies.
    """
    kind = OPEN
    name = "none"

    def __init__(self, extent: float = 0.0):
        self.extent = float(extent)

    @property
    def wrap_extent(self) -> float:
        return 0.0

    def initial_sample(self, rng: np.random.Generator, count: int) -> np.ndarray:
        return rng.uniform(-self.extent, self.extent, size=(count, 2)).astype(FLOAT_DTYPE)

    def wrap_delta(self, delta: np.ndarray) -> np.ndarray:
        return np.asarray(delta)

    def clamp_after_step(self, positions: np.ndarray, velocities: np.ndarray) -> None:
        pass

    def __eq__(self, other) -> bool:
        if not isinstance(other, BoundaryPolicy):
            return NotImplemented
        return self.kind == other.kind and self.extent == other.extent

    def __hash__(self):
        return hash((self.kind, self.extent))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.extent})"


class Open(BoundaryPolicy):
    """Unbounded plane. No wrap, no walls."""
    kind = OPEN
    name = "none"

    def __init__(self):
        super().__init__(0.0)

    def initial_sample(self, rng: np.random.Generator, count: int) -> np.ndarray:
        return rng.normal(0.0, OPEN_SPAWN_STD, size=(count, 2)).astype(FLOAT_DTYPE)

    def __repr__(self) -> str:
        return "Open()"


class _Bounded(BoundaryPolicy):
    def __init__(self, extent: float):
        if extent is None or not math.isfinite(extent) or extent <= 0.0:
            msg = (
                f"Configuration error: {type(self).__name__} boundary requires a "
                f"positive, finite extent, got {extent!r}."
            )
            logging.critical(msg)
            raise ValueError(msg)
        super().__init__(extent)


class Reflective(_Bounded):
    """Square domain [-extent, extent]^2 with elastic walls."""
    kind = REFLECTIVE
    name = "square"

    def clamp_after_step(self, positions: np.ndarray, velocities: np.ndarray) -> None:
        _clamp_all(positions, velocities, REFLECTIVE, self.extent)


class Periodic(_Bounded):
    """Square domain [-extent, extent)^2 wrapped into a torus."""
    kind = PERIODIC
    name = "wrapping"

    @property
    def wrap_extent(self) -> float:
        return self.extent

    def wrap_delta(self, delta: np.ndarray) -> np.ndarray:
        delta = np.array(delta, dtype=FLOAT_DTYPE)
        width = 2.0 * self.extent
        delta = np.where(delta > self.extent, delta - width, delta)
        delta = np.where(delta < -self.extent, delta + width, delta)
        return delta.astype(FLOAT_DTYPE)

    def clamp_after_step(self, positions: np.ndarray, velocities: np.ndarray) -> None:
        _clamp_all(positions, velocities, PERIODIC, self.extent)


_BY_NAME = {
    "none": Open,
    "open": Open,
    "square": Reflective,
    "reflective": Reflective,
    "wrapping": Periodic,
    "periodic": Periodic,
}


def boundary_from_name(name: str, extent=None) -> BoundaryPolicy:
    """
    Builds a policy from its configuration name.

    'none'/'open' ignore extent; 'square'/'reflective' and
    'wrapping'/'periodic' require it.
    """
    key = str(name).lower()
    if key not in _BY_NAME:
        msg = f"Unknown boundary type '{name}'. Expected one of: none, square, wrapping."
        logging.critical(msg)
        raise ValueError(msg)
    policy_cls = _BY_NAME[key]
    if policy_cls is Open:
        return Open()
    return policy_cls(extent)


def boundary_from_state(kind: int, extent: float) -> BoundaryPolicy:
    """Rebuilds a policy from its integer tag, as stored in checkpoints."""
    if kind == OPEN:
        return Open()
    if kind == REFLECTIVE:
        return Reflective(extent)
    if kind == PERIODIC:
        return Periodic(extent)
    raise ValueError(f"Unknown boundary tag {kind}.")
