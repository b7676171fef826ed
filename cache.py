# cache.py
"""
Flattened type-pair parameter tables for the force evaluation hot loop.

The per-pair (min_r, max_r, attraction) triple is stored in contiguous
row-major arrays so that compiled kernels fetch it with a single index,
type_a * num_types + type_b, instead of walking nested matrices.
"""
import logging
import numpy as np
from typing import Tuple
from constants import FLOAT_DTYPE
from ruleset import RuleSet

# --- Data Contracts ---
#
# class TypePairCache:
#   - from_ruleset(ruleset: RuleSet) -> TypePairCache:
#     - Outputs: A cache whose arrays have length num_types ** 2.
#   - Invariants:
#     - min_r, max_r, attraction are read-only float32 arrays.
#     - Entry k = a * num_types + b mirrors ruleset.<field>[a, b].
#     - Built once per simulation and never mutated.


class TypePairCache:
    """
    Read-only flat projection of a RuleSet's type-pair matrices.
    """
    def __init__(self, num_types: int, min_r: np.ndarray, max_r: np.ndarray, attraction: np.ndarray):
        self.num_types = int(num_types)
        expected = self.num_types * self.num_types
        arrays = []
        for name, values in (("min_r", min_r), ("max_r", max_r), ("attraction", attraction)):
            flat = np.ascontiguousarray(values, dtype=FLOAT_DTYPE).reshape(-1)
            if flat.shape[0] != expected:
                msg = f"Cache table {name} has {flat.shape[0]} entries, expected {expected}."
                logging.critical(msg)
                raise ValueError(msg)
            flat.setflags(write=False)
            arrays.append(flat)
        self.min_r, self.max_r, self.attraction = arrays

    @classmethod
    def from_ruleset(cls, ruleset: RuleSet) -> "TypePairCache":
        cache = cls(
            ruleset.num_types,
            ruleset.min_r.values,
            ruleset.max_r.values,
            ruleset.attraction.values,
        )
        logging.debug(f"Type-pair cache built for {ruleset.num_types} types ({cache.min_r.shape[0]} entries).")
        return cache

    def index(self, type_a: int, type_b: int) -> int:
        n = self.num_types
        if not (0 <= type_a < n and 0 <= type_b < n):
            raise IndexError(f"Type pair ({type_a}, {type_b}) out of range for {n} types.")
        return type_a * n + type_b

    def lookup(self, type_a: int, type_b: int) -> Tuple[float, float, float]:
        """Returns (min_r, max_r, attraction) for an ordered pair of types."""
        k = self.index(type_a, type_b)
        return float(self.min_r[k]), float(self.max_r[k]), float(self.attraction[k])
