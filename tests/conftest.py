"""Pytest configuration and shared fixtures."""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Create a seeded NumPy random generator for testing."""
    return np.random.default_rng(42)


@pytest.fixture
def start_position():
    """Create the standard starting position."""
    from bgequity.core.board import initial_position
    return initial_position()


@pytest.fixture
def new_game():
    """Create a one-point match before the opening roll."""
    from bgequity.core.game import GameController
    return GameController.new()


@pytest.fixture
def evaluator():
    """Create an evaluator that does not log cache statistics."""
    from bgequity.evaluation.evaluator import Evaluator, EvaluatorConfig
    return Evaluator(EvaluatorConfig(log_cache_stats=False))
