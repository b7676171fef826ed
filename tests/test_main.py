"""Tests for the command-line entry point."""

import json

import numpy as np
import pytest

from main import apply_arguments, build_parser, build_ruleset, main
from serialize import load_checkpoint, save_ruleset
from utils import resolve_config


@pytest.fixture
def quiet_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"logging": {"level": "WARNING", "log_file": None}}))
    return str(path)


class TestMain:
    """End-to-end runs through main()."""

    def test_headless_run_writes_checkpoint(self, tmp_path, quiet_config, restore_root_logger):
        save_path = tmp_path / "run.npz"
        code = main([
            "--config", quiet_config, "--headless", "--steps", "3",
            "--points", "25", "--seed", "1", "--preset", "chaos",
            "--walls", "wrapping", "--wall-dist", "30", "--save", str(save_path),
        ])
        assert code == 0
        resumed = load_checkpoint(str(save_path))
        assert resumed.tick == 3
        assert resumed.population == 25
        assert resumed.boundary.extent == 30.0

    def test_resume_from_checkpoint(self, tmp_path, quiet_config, restore_root_logger):
        first = tmp_path / "first.npz"
        second = tmp_path / "second.npz"
        assert main(["--config", quiet_config, "--headless", "--steps", "2",
                     "--points", "10", "--save", str(first)]) == 0
        assert main(["--config", quiet_config, "--headless", "--steps", "4",
                     "--load", str(first), "--save", str(second)]) == 0
        assert load_checkpoint(str(second)).tick == 6

    def test_bounded_walls_need_a_distance(self, quiet_config):
        with pytest.raises(SystemExit):
            main(["--config", quiet_config, "--headless", "--walls", "square"])

    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.json"), "--headless"]) == 1
        assert "FATAL" in capsys.readouterr().err

    def test_bad_ruleset_file(self, tmp_path, quiet_config, restore_root_logger):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"num_types": 1}))
        assert main(["--config", quiet_config, "--headless", "--steps", "1",
                     "--ruleset", str(path)]) == 1

    def test_source_flags_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--preset", "chaos", "--load", "x.npz"])


class TestConfiguration:
    """Flags override the layered config."""

    def test_flags_override_config(self):
        args = build_parser().parse_args(["--points", "5", "--walls", "square", "--wall-dist", "12"])
        config = apply_arguments(resolve_config(None), args)
        assert config["simulation"]["points"] == 5
        assert config["simulation"]["walls"] == "square"
        assert config["simulation"]["wall_dist"] == 12.0
        assert config["run_control"]["headless"] is False

    def test_unset_flags_keep_config(self):
        config = apply_arguments(resolve_config(None), build_parser().parse_args([]))
        assert config == resolve_config(None)


class TestBuildRuleset:
    """A file beats an inline template, which beats a preset."""

    def test_file_first(self, tmp_path, single_type_rules):
        path = tmp_path / "rules.json"
        save_ruleset(single_type_rules, str(path))
        section = {"path": str(path), "template": {"num_types": 3}, "preset": "chaos"}
        assert build_ruleset(section, np.random.default_rng(0)) == single_type_rules

    def test_template_before_preset(self):
        section = {
            "template": {
                "num_types": 2,
                "min_r": 1.0,
                "max_r": {"uniform": [5.0, 6.0]},
                "attraction": {"normal": [0.0, 0.1]},
                "friction": 0.5,
            },
            "preset": "chaos",
        }
        rules = build_ruleset(section, np.random.default_rng(0))
        assert rules.num_types == 2
        assert rules.friction == 0.5

    def test_preset_fallback(self):
        rules = build_ruleset({"preset": "homogeneity"}, np.random.default_rng(0))
        assert rules.num_types == 4
