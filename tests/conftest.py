from __future__ import annotations

import random

import pytest
from hypothesis import settings

# ---- Deterministic Testing Configuration ---------------------

DETERMINISTIC_SEED = 42


@pytest.fixture(autouse=True)
def set_deterministic_seed():
    """Set deterministic seed for all tests"""
    random.seed(DETERMINISTIC_SEED)
    yield
    random.seed()


@pytest.fixture
def missing_config(tmp_path):
    """Path to a settings file that does not exist (built-in defaults apply)."""
    return str(tmp_path / "no_settings.yaml")


# Hypothesis settings for all property-based tests
settings.register_profile(
    "deterministic",
    deadline=None,
    max_examples=200,
    derandomize=True,
    database=None,
)
settings.load_profile("deterministic")
