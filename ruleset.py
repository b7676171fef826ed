# ruleset.py
"""
Holds the interaction parameters of a simulation.

This module defines TypeMatrix, a fixed-shape square container indexed by
an ordered pair of particle types, and RuleSet, the immutable bundle of
type-pair matrices and friction that governs a single simulation.
"""
import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Tuple
from constants import FLOAT_DTYPE

# --- Data Contracts ---
#
# class TypeMatrix:
#   - __init__(self, values):
#     - Inputs:
#       - values: Anything np.asarray accepts, forming an N x N grid, N >= 1.
#     - Side Effects: Copies the values into a read-only float32 array.
#     - Invariants: Always square. Never mutated after construction.
#
#   - __getitem__(self, key: Tuple[int, int]) -> float:
#     - Raises IndexError for a type outside [0, N).
#
# class RuleSet:
#   - Fields: num_types, min_r, max_r, attraction (TypeMatrix), friction.
#   - Invariants: every matrix is num_types x num_types, num_types >= 1,
#     0 <= friction <= 1. min_r < max_r is NOT enforced here; see
#     degenerate_pairs().


class TypeMatrix:
    """
    A square float matrix addressed by (type_a, type_b).
    """
    def __init__(self, values):
        array = np.array(values, dtype=FLOAT_DTYPE)
        if array.ndim != 2 or array.shape[0] != array.shape[1] or array.shape[0] < 1:
            msg = f"Type matrix must be a non-empty square grid, got shape {array.shape}."
            logging.critical(msg)
            raise ValueError(msg)
        array.setflags(write=False)
        self._values = array

    @classmethod
    def full(cls, size: int, value: float) -> "TypeMatrix":
        return cls(np.full((size, size), value, dtype=FLOAT_DTYPE))

    @property
    def size(self) -> int:
        return self._values.shape[0]

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the underlying N x N array."""
        return self._values

    def __getitem__(self, key: Tuple[int, int]) -> float:
        type_a, type_b = key
        n = self.size
        if not (0 <= type_a < n and 0 <= type_b < n):
            raise IndexError(f"Type pair ({type_a}, {type_b}) out of range for {n} types.")
        return float(self._values[type_a, type_b])

    def tolist(self) -> List[List[float]]:
        return self._values.tolist()

    def __eq__(self, other) -> bool:
        if not isinstance(other, TypeMatrix):
            return NotImplemented
        return np.array_equal(self._values, other._values, equal_nan=True)

    def __hash__(self):
        # Adding 0.0 folds -0.0 onto 0.0, which compare equal
        return hash((self._values.shape, (self._values + 0.0).tobytes()))

    def __repr__(self) -> str:
        return f"TypeMatrix({self.tolist()!r})"


@dataclass(frozen=True, eq=True)
class RuleSet:
    """
    Immutable per-simulation interaction parameters.

    Row index is the type of the particle feeling the force, column index
    the type of the particle exerting it. Matrices need not be symmetric.
    """
    num_types: int
    min_r: TypeMatrix
    max_r: TypeMatrix
    attraction: TypeMatrix
    friction: float

    def __post_init__(self):
        if self.num_types < 1:
            msg = f"Configuration error: a ruleset needs at least one type, got {self.num_types}."
            logging.critical(msg)
            raise ValueError(msg)

        for name in ("min_r", "max_r", "attraction"):
            matrix = getattr(self, name)
            if not isinstance(matrix, TypeMatrix):
                matrix = TypeMatrix(matrix)
                object.__setattr__(self, name, matrix)
            if matrix.size != self.num_types:
                msg = (
                    f"Configuration error: {name} matrix is {matrix.size}x{matrix.size} "
                    f"but the ruleset declares {self.num_types} types."
                )
                logging.critical(msg)
                raise ValueError(msg)

        friction = float(self.friction)
        if not 0.0 <= friction <= 1.0:
            msg = f"Configuration error: friction must lie in [0, 1], got {friction}."
            logging.critical(msg)
            raise ValueError(msg)
        object.__setattr__(self, "friction", friction)

    @classmethod
    def uniform(cls, num_types: int, min_r: float, max_r: float,
                attraction: float, friction: float) -> "RuleSet":
        """Builds a ruleset where every type pair shares the same parameters."""
        return cls(
            num_types=num_types,
            min_r=TypeMatrix.full(num_types, min_r),
            max_r=TypeMatrix.full(num_types, max_r),
            attraction=TypeMatrix.full(num_types, attraction),
            friction=friction,
        )

    def pair(self, type_a: int, type_b: int) -> Tuple[float, float, float]:
        """Returns the (min_r, max_r, attraction) triple for an ordered type pair."""
        return (
            self.min_r[type_a, type_b],
            self.max_r[type_a, type_b],
            self.attraction[type_a, type_b],
        )

    def degenerate_pairs(self) -> List[Tuple[int, int]]:
        """
        Lists the ordered type pairs whose band is empty (min_r >= max_r).

        The force law's outer branch divides by (max_r - min_r), so these
        pairs can yield non-finite forces.
        """
        rows, cols = np.nonzero(self.min_r.values >= self.max_r.values)
        return [(int(a), int(b)) for a, b in zip(rows, cols)]
