"""Unit tests for ruleset templates and presets."""

import numpy as np
import pytest

from ruleset import RuleSet
from templates import (
    PRESETS, Constant, Normal, RuleSetTemplate, Uniform, UniformInt,
    distribution_from_config, get_preset, template_from_config,
)


def constant_template(num_types=3):
    return RuleSetTemplate(
        num_types=Constant(num_types),
        min_r=Constant(2.0),
        max_r=Constant(20.0),
        attraction=Constant(0.25),
        friction=Constant(0.1),
    )


class TestDistributions:
    """Tests for the distribution descriptors."""

    def test_constant(self, rng):
        assert Constant(3.5).sample(rng) == 3.5
        assert np.all(Constant(3.5).sample(rng, size=(2, 2)) == 3.5)

    def test_uniform_range(self, rng):
        draws = Uniform(-1.0, 2.0).sample(rng, size=1000)
        assert draws.min() >= -1.0
        assert draws.max() < 2.0

    def test_uniform_int_inclusive(self, rng):
        draws = UniformInt(2, 3).sample(rng, size=200)
        assert set(draws.tolist()) == {2, 3}
        assert isinstance(UniformInt(2, 3).sample(rng), int)

    def test_normal_moments(self, rng):
        draws = Normal(1.0, 0.5).sample(rng, size=20000)
        assert draws.mean() == pytest.approx(1.0, abs=0.02)
        assert draws.std() == pytest.approx(0.5, abs=0.02)


class TestRuleSetTemplate:
    """Tests for RuleSetTemplate.sample."""

    def test_constant_template(self, rng):
        rules = constant_template().sample(rng)
        assert isinstance(rules, RuleSet)
        assert rules.num_types == 3
        assert np.all(rules.min_r.values == 2.0)
        assert np.all(rules.max_r.values == 20.0)
        assert np.all(rules.attraction.values == 0.25)
        assert rules.friction == pytest.approx(0.1)

    def test_same_seed_same_ruleset(self):
        template = PRESETS["diversity"]
        a = template.sample(np.random.default_rng(7))
        b = template.sample(np.random.default_rng(7))
        assert a == b

    def test_different_seed_different_ruleset(self):
        template = PRESETS["diversity"]
        a = template.sample(np.random.default_rng(7))
        b = template.sample(np.random.default_rng(8))
        assert a != b

    def test_cells_drawn_independently(self, rng):
        rules = PRESETS["chaos"].sample(rng)
        values = rules.attraction.values
        assert not np.array_equal(values, values.T)
        assert len(np.unique(values)) == values.size

    def test_friction_clipped(self, rng):
        template = RuleSetTemplate(
            num_types=Constant(1),
            min_r=Constant(1.0),
            max_r=Constant(2.0),
            attraction=Constant(0.0),
            friction=Constant(1.7),
        )
        assert template.sample(rng).friction == 1.0

    def test_num_types_at_least_one(self, rng):
        assert constant_template(num_types=0).sample(rng).num_types == 1


class TestPresets:
    """Tests for the named presets."""

    def test_diversity(self, rng):
        rules = get_preset("diversity").sample(rng)
        assert rules.num_types == 12
        assert rules.friction == pytest.approx(0.05)
        assert rules.min_r.values.min() >= 0.0
        assert rules.min_r.values.max() < 20.0
        assert rules.max_r.values.min() >= 10.0
        assert rules.max_r.values.max() < 60.0

    def test_case_insensitive(self):
        assert get_preset("Chaos") is PRESETS["chaos"]

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_preset("nope")

    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_every_preset_samples(self, name, rng):
        rules = PRESETS[name].sample(rng)
        assert rules.num_types >= 1
        assert 0.0 <= rules.friction <= 1.0


class TestConfigParsing:
    """Tests for building templates from configuration data."""

    @pytest.mark.parametrize("descriptor,expected", [
        (4, Constant(4)),
        (0.5, Constant(0.5)),
        ({"constant": 2.0}, Constant(2.0)),
        ({"uniform": [0.0, 20.0]}, Uniform(0.0, 20.0)),
        ({"uniform_int": [4, 8]}, UniformInt(4, 8)),
        ({"normal": [-0.01, 0.04]}, Normal(-0.01, 0.04)),
    ])
    def test_distribution_from_config(self, descriptor, expected):
        assert distribution_from_config(descriptor) == expected

    @pytest.mark.parametrize("descriptor", ["uniform", {"poisson": [1]}, {"uniform": [0, 1], "normal": [0, 1]}, True])
    def test_bad_descriptor(self, descriptor):
        with pytest.raises(ValueError):
            distribution_from_config(descriptor)

    def test_template_from_config(self, rng):
        template = template_from_config({
            "num_types": 2,
            "min_r": {"uniform": [1.0, 2.0]},
            "max_r": 30.0,
            "attraction": {"normal": [0.0, 0.1]},
            "friction": 0.2,
        })
        rules = template.sample(rng)
        assert rules.num_types == 2
        assert np.all(rules.max_r.values == 30.0)

    def test_template_missing_field(self):
        with pytest.raises(ValueError):
            template_from_config({"num_types": 2})
