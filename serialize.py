# serialize.py
"""
Saving and loading rulesets and simulation checkpoints.

Rulesets are stored as JSON so they can be written by hand. Checkpoints
are numpy .npz archives holding exactly what is needed to resume a run:
the particle arrays, the ruleset, the boundary policy and the tick count.
The type-pair cache is derived data and is rebuilt on load.
"""
import json
import logging
import numpy as np
from typing import Any, Dict
from boundary import boundary_from_state
from particle import ParticleSystem
from ruleset import RuleSet, TypeMatrix
from simulation import Simulation

# --- Data Contracts ---
#
# save_ruleset(ruleset, path) / load_ruleset(path):
#   - JSON object with keys num_types, min_r, max_r, attraction (nested
#     lists) and friction. Loading validates through RuleSet.
#
# save_checkpoint(simulation, path) / load_checkpoint(path, backend="cpu"):
#   - .npz with positions, velocities, types, num_types, min_r, max_r,
#     attraction, friction, boundary_kind, boundary_extent, tick.
#   - No format-stability guarantee between versions.


def ruleset_to_dict(ruleset: RuleSet) -> Dict[str, Any]:
    return {
        "num_types": ruleset.num_types,
        "min_r": ruleset.min_r.tolist(),
        "max_r": ruleset.max_r.tolist(),
        "attraction": ruleset.attraction.tolist(),
        "friction": ruleset.friction,
    }


def ruleset_from_dict(data: Dict[str, Any]) -> RuleSet:
    try:
        return RuleSet(
            num_types=int(data["num_types"]),
            min_r=TypeMatrix(data["min_r"]),
            max_r=TypeMatrix(data["max_r"]),
            attraction=TypeMatrix(data["attraction"]),
            friction=float(data["friction"]),
        )
    except KeyError as e:
        msg = f"Ruleset data is missing the field {e}."
        logging.error(msg)
        raise ValueError(msg) from e


def save_ruleset(ruleset: RuleSet, path: str) -> None:
    with open(path, 'w') as f:
        json.dump(ruleset_to_dict(ruleset), f, indent=2)
    logging.info(f"Ruleset saved to {path}.")


def load_ruleset(path: str) -> RuleSet:
    """Loads a JSON ruleset file."""
    logging.info(f"Loading ruleset from {path}...")
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except FileNotFoundError:
        logging.error(f"Ruleset file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise
    return ruleset_from_dict(data)


def save_checkpoint(simulation: Simulation, path: str) -> None:
    """
    Writes the full resumable state of a simulation.

    Must be called between ticks.
    """
    ruleset = simulation.ruleset
    boundary = simulation.boundary
    np.savez_compressed(
        path,
        positions=simulation.positions,
        velocities=simulation.velocities,
        types=simulation.types,
        num_types=np.int64(ruleset.num_types),
        min_r=ruleset.min_r.values,
        max_r=ruleset.max_r.values,
        attraction=ruleset.attraction.values,
        friction=np.float64(ruleset.friction),
        boundary_kind=np.int64(boundary.kind),
        boundary_extent=np.float64(boundary.extent),
        tick=np.int64(simulation.tick),
    )
    logging.info(f"Checkpoint at tick {simulation.tick} saved to {path}.")


def load_checkpoint(path: str, backend="cpu") -> Simulation:
    """Restores a Simulation saved by save_checkpoint."""
    logging.info(f"Loading checkpoint from {path}...")
    with np.load(path) as data:
        ruleset = RuleSet(
            num_types=int(data["num_types"]),
            min_r=TypeMatrix(data["min_r"]),
            max_r=TypeMatrix(data["max_r"]),
            attraction=TypeMatrix(data["attraction"]),
            friction=float(data["friction"]),
        )
        boundary = boundary_from_state(int(data["boundary_kind"]), float(data["boundary_extent"]))
        particles = ParticleSystem(
            data["positions"].copy(),
            data["velocities"].copy(),
            data["types"].copy(),
        )
        tick = int(data["tick"])
    return Simulation.from_state(particles, ruleset, boundary, tick=tick, backend=backend)
