"""Tests for ruleset files and checkpoints."""

import json

import numpy as np
import pytest

from boundary import Periodic, Reflective
from ruleset import RuleSet
from serialize import (
    load_checkpoint, load_ruleset, ruleset_from_dict, ruleset_to_dict,
    save_checkpoint, save_ruleset
)
from simulation import Simulation
from templates import PRESETS


class TestRulesetFiles:
    """JSON rulesets."""

    def test_file_roundtrip(self, tmp_path, rng):
        rules = PRESETS["chaos"].sample(rng)
        path = tmp_path / "rules.json"
        save_ruleset(rules, str(path))
        assert load_ruleset(str(path)) == rules

    def test_hand_written_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({
            "num_types": 2,
            "min_r": [[1, 1], [1, 1]],
            "max_r": [[10, 10], [10, 10]],
            "attraction": [[1.0, -0.5], [0.25, 0.0]],
            "friction": 0.1,
        }))
        rules = load_ruleset(str(path))
        assert rules.num_types == 2
        assert rules.pair(0, 1)[2] == pytest.approx(-0.5)
        assert rules.friction == pytest.approx(0.1)

    def test_missing_field(self, single_type_rules):
        data = ruleset_to_dict(single_type_rules)
        del data["attraction"]
        with pytest.raises(ValueError):
            ruleset_from_dict(data)

    def test_mismatched_matrix(self, single_type_rules):
        data = ruleset_to_dict(single_type_rules)
        data["num_types"] = 2
        with pytest.raises(ValueError):
            ruleset_from_dict(data)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_ruleset(str(tmp_path / "nope.json"))


class TestCheckpoints:
    """Resuming a checkpoint continues the exact same trajectory."""

    @pytest.mark.parametrize("boundary", [Reflective(50.0), Periodic(50.0)])
    def test_resume_matches_uninterrupted_run(self, tmp_path, boundary):
        rules = PRESETS["balanced"].sample(np.random.default_rng(3))
        original = Simulation(150, rules, boundary, rng=np.random.default_rng(4))
        original.run(3)

        path = tmp_path / "state.npz"
        save_checkpoint(original, str(path))
        resumed = load_checkpoint(str(path))

        assert resumed.tick == 3
        assert resumed.ruleset == rules
        assert resumed.boundary == boundary
        assert np.array_equal(resumed.positions, original.positions)

        original.run(5)
        resumed.run(5)
        assert resumed.tick == original.tick == 8
        assert np.array_equal(resumed.positions, original.positions)
        assert np.array_equal(resumed.velocities, original.velocities)
        assert np.array_equal(resumed.types, original.types)

    def test_resumed_state_is_independent(self, tmp_path, single_type_rules, make_simulation):
        sim = make_simulation([[0.0, 0.0], [5.0, 0.0]], single_type_rules, Reflective(20.0))
        path = tmp_path / "state.npz"
        save_checkpoint(sim, str(path))
        resumed = load_checkpoint(str(path))
        resumed.step()
        assert sim.tick == 0
        assert sim.positions.tolist() == [[0.0, 0.0], [5.0, 0.0]]

    def test_cache_is_rebuilt(self, tmp_path, single_type_rules, make_simulation):
        sim = make_simulation([[0.0, 0.0]], single_type_rules, Periodic(10.0))
        path = tmp_path / "state.npz"
        save_checkpoint(sim, str(path))
        resumed = load_checkpoint(str(path))
        assert resumed.cache.lookup(0, 0) == sim.cache.lookup(0, 0)
        assert isinstance(resumed.ruleset, RuleSet)
