# kernel.py
"""
The pairwise force law.

pair_force is the single definition of the per-pair math. It is written
in plain scalar Python so numba can compile it for the CPU backend here
and as a device function for the GPU backend, keeping both in step.
"""
import math
import numpy as np
from numba import jit
from constants import MIN_DISTANCE_SQ, R_SMOOTH

# --- Data Contracts ---
#
# pair_force(dx, dy, min_r, max_r, attraction) -> (fx, fy):
#   - Inputs:
#     - dx, dy: Displacement from the particle feeling the force to the
#       particle exerting it, already corrected by the boundary policy.
#     - min_r, max_r, attraction: The type-pair parameters.
#   - Outputs: The force contribution as a pair of floats.
#   - Invariants: Pure. Zero when r^2 > max_r^2 or r^2 < MIN_DISTANCE_SQ.
#     Continuous (not smooth) at r == min_r. Assumes min_r < max_r.
#
# force(delta, min_r, max_r, attraction) -> np.ndarray:
#   - Vector form of pair_force for a (2,) displacement.


def pair_force(dx, dy, min_r, max_r, attraction):
    r2 = dx * dx + dy * dy
    if r2 > max_r * max_r or r2 < MIN_DISTANCE_SQ:
        return 0.0, 0.0

    r = math.sqrt(r2)
    nx = dx / r
    ny = dy / r

    if r > min_r:
        # Tent profile: zero at min_r and max_r, peak at the midpoint.
        f = attraction * (1.0 - 2.0 * abs(r - 0.5 * (max_r + min_r)) / (max_r - min_r))
    else:
        # Softened repulsion, finite at r == 0 and zero at r == min_r.
        f = R_SMOOTH * min_r * (1.0 / (min_r + R_SMOOTH) - 1.0 / (r + R_SMOOTH))

    return nx * f, ny * f


pair_force_jit = jit(nopython=True)(pair_force)


def force(delta, min_r: float, max_r: float, attraction: float) -> np.ndarray:
    """
    Force exerted on a particle by a neighbour at displacement delta.

    Args:
        delta: Two-component displacement (neighbour minus self).
        min_r (float): Inner radius of the type pair.
        max_r (float): Interaction cutoff of the type pair.
        attraction (float): Signed strength of the outer band.

    Returns:
        np.ndarray: The (2,) force vector.
    """
    fx, fy = pair_force(float(delta[0]), float(delta[1]), float(min_r), float(max_r), float(attraction))
    return np.array([fx, fy])
