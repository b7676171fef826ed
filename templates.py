# templates.py
"""
Stochastic generation of rulesets.

A RuleSetTemplate describes every ruleset parameter as a distribution
(a constant, a uniform range or a normal distribution) and samples a
concrete RuleSet from it. The named presets are fixed bundles of such
distributions. All randomness comes from the numpy Generator passed in,
so a seeded generator reproduces the same ruleset every time.
"""
import logging
import numpy as np
from dataclasses import dataclass
from typing import Any, Dict, Union
from constants import FLOAT_DTYPE
from ruleset import RuleSet, TypeMatrix

# --- Data Contracts ---
#
# Distribution descriptors (Constant, Uniform, UniformInt, Normal):
#   - sample(self, rng: np.random.Generator, size=None):
#     - Outputs: A scalar when size is None, otherwise an array of the
#       given shape with one independent draw per cell.
#
# class RuleSetTemplate:
#   - sample(self, rng: np.random.Generator) -> RuleSet:
#     - Draw order: num_types, then the full min_r, max_r and attraction
#       matrices (one fresh draw per ordered pair), then friction once.
#     - Invariants: num_types >= 1, friction clipped into [0, 1]. min_r
#       may exceed max_r for some pairs when the ranges overlap.


@dataclass(frozen=True)
class Constant:
    value: float

    def sample(self, rng: np.random.Generator, size=None):
        if size is None:
            return self.value
        return np.full(size, self.value)


@dataclass(frozen=True)
class Uniform:
    """Continuous uniform draw on [low, high)."""
    low: float
    high: float

    def sample(self, rng: np.random.Generator, size=None):
        return rng.uniform(self.low, self.high, size=size)


@dataclass(frozen=True)
class UniformInt:
    """Integer uniform draw on [low, high], both ends inclusive."""
    low: int
    high: int

    def sample(self, rng: np.random.Generator, size=None):
        value = rng.integers(self.low, self.high, endpoint=True, size=size)
        return int(value) if size is None else value


@dataclass(frozen=True)
class Normal:
    mean: float
    std: float

    def sample(self, rng: np.random.Generator, size=None):
        return rng.normal(self.mean, self.std, size=size)


Distribution = Union[Constant, Uniform, UniformInt, Normal]


@dataclass(frozen=True)
class RuleSetTemplate:
    """
    Distribution descriptors for every parameter of a RuleSet.
    """
    num_types: Distribution
    min_r: Distribution
    max_r: Distribution
    attraction: Distribution
    friction: Distribution

    def sample(self, rng: np.random.Generator) -> RuleSet:
        """
        Draws a concrete RuleSet.

        Args:
            rng (np.random.Generator): The random source for every draw.

        Returns:
            RuleSet: A freshly sampled, generally asymmetric ruleset.
        """
        num_types = max(1, int(round(self.num_types.sample(rng))))
        shape = (num_types, num_types)

        min_r = np.asarray(self.min_r.sample(rng, size=shape), dtype=FLOAT_DTYPE)
        max_r = np.asarray(self.max_r.sample(rng, size=shape), dtype=FLOAT_DTYPE)
        attraction = np.asarray(self.attraction.sample(rng, size=shape), dtype=FLOAT_DTYPE)
        friction = float(np.clip(self.friction.sample(rng), 0.0, 1.0))

        ruleset = RuleSet(
            num_types=num_types,
            min_r=TypeMatrix(min_r),
            max_r=TypeMatrix(max_r),
            attraction=TypeMatrix(attraction),
            friction=friction,
        )
        logging.info(f"Sampled ruleset with {num_types} types and friction {friction:.3f}.")
        logging.debug(f"Degenerate type pairs in sampled ruleset: {ruleset.degenerate_pairs()}")
        return ruleset


# --- Presets ---
# Static distribution bundles, selectable by name from the CLI and config.
PRESETS: Dict[str, RuleSetTemplate] = {
    "cool": RuleSetTemplate(
        num_types=UniformInt(4, 8),
        min_r=Uniform(5.0, 15.0),
        max_r=Uniform(20.0, 50.0),
        attraction=Normal(0.0, 0.05),
        friction=Uniform(0.02, 0.08),
    ),
    "diversity": RuleSetTemplate(
        num_types=Constant(12),
        min_r=Uniform(0.0, 20.0),
        max_r=Uniform(10.0, 60.0),
        attraction=Normal(-0.01, 0.04),
        friction=Constant(0.05),
    ),
    "balanced": RuleSetTemplate(
        num_types=Constant(9),
        min_r=Uniform(0.0, 20.0),
        max_r=Uniform(20.0, 70.0),
        attraction=Normal(-0.02, 0.06),
        friction=Constant(0.05),
    ),
    "chaos": RuleSetTemplate(
        num_types=Constant(6),
        min_r=Uniform(0.0, 30.0),
        max_r=Uniform(30.0, 100.0),
        attraction=Normal(0.02, 0.04),
        friction=Constant(0.01),
    ),
    "homogeneity": RuleSetTemplate(
        num_types=Constant(4),
        min_r=Constant(10.0),
        max_r=Uniform(10.0, 80.0),
        attraction=Normal(0.0, 0.04),
        friction=Constant(0.05),
    ),
    "quiescence": RuleSetTemplate(
        num_types=Constant(6),
        min_r=Uniform(10.0, 20.0),
        max_r=Uniform(20.0, 60.0),
        attraction=Normal(-0.02, 0.1),
        friction=Constant(0.2),
    ),
}


def get_preset(name: str) -> RuleSetTemplate:
    """Looks up a preset by case-insensitive name."""
    key = name.lower()
    if key not in PRESETS:
        msg = f"Unknown ruleset preset '{name}'. Available: {', '.join(sorted(PRESETS))}."
        logging.critical(msg)
        raise ValueError(msg)
    return PRESETS[key]


def distribution_from_config(descriptor: Any) -> Distribution:
    """
    Parses one distribution descriptor from configuration data.

    Accepts a bare number (constant) or a single-key mapping:
    {"constant": v}, {"uniform": [low, high]}, {"uniform_int": [low, high]}
    or {"normal": [mean, std]}.
    """
    if isinstance(descriptor, (int, float)) and not isinstance(descriptor, bool):
        return Constant(descriptor)
    if isinstance(descriptor, dict) and len(descriptor) == 1:
        (kind, args), = descriptor.items()
        if kind == "constant":
            return Constant(args)
        if kind == "uniform":
            return Uniform(*args)
        if kind == "uniform_int":
            return UniformInt(*args)
        if kind == "normal":
            return Normal(*args)
    msg = f"Configuration error: cannot interpret distribution descriptor {descriptor!r}."
    logging.critical(msg)
    raise ValueError(msg)


def template_from_config(section: Dict[str, Any]) -> RuleSetTemplate:
    """Builds a RuleSetTemplate from a mapping of parameter name to descriptor."""
    fields = ("num_types", "min_r", "max_r", "attraction", "friction")
    missing = [name for name in fields if name not in section]
    if missing:
        msg = f"Configuration error: ruleset template is missing {', '.join(missing)}."
        logging.critical(msg)
        raise ValueError(msg)
    return RuleSetTemplate(**{name: distribution_from_config(section[name]) for name in fields})
