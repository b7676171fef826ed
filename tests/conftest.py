"""
Pytest configuration and shared fixtures.

The GPU backend runs on numba's CUDA simulator unless NUMBA_ENABLE_CUDASIM
is already set; export NUMBA_ENABLE_CUDASIM=0 to test on a real device.
"""

import os

# Must be set before numba.cuda is first imported
os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import pytest  # noqa: E402
import numpy as np  # noqa: E402


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(seed=42)


@pytest.fixture
def single_type_rules():
    """One type, band [1, 10], unit attraction, no friction."""
    from ruleset import RuleSet
    return RuleSet.uniform(1, min_r=1.0, max_r=10.0, attraction=1.0, friction=0.0)


@pytest.fixture
def make_simulation():
    """Factory building a Simulation from explicit particle state."""
    from particle import ParticleSystem
    from simulation import Simulation

    def _make(positions, ruleset, boundary, velocities=None, types=None):
        positions = np.asarray(positions, dtype=np.float32)
        count = positions.shape[0]
        if velocities is None:
            velocities = np.zeros((count, 2), dtype=np.float32)
        if types is None:
            types = np.zeros(count, dtype=np.int32)
        particles = ParticleSystem(positions, velocities, types)
        return Simulation.from_state(particles, ruleset, boundary)

    return _make


@pytest.fixture
def restore_root_logger():
    """Undo handler and level changes made by setup_logging."""
    import logging

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
