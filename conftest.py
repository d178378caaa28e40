"""Shared fixtures for the test suite."""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from data import gaussian_clusters, small_example


@pytest.fixture(scope='session')
def clusters():
    """500 points in 5 gaussian clusters living in a 10-d subspace of 64-d."""
    return gaussian_clusters(num_points=500, num_clusters=5, high_dim=64, sub_dim=10, seed=42)


@pytest.fixture
def separated():
    """Two far apart uniform blobs in the plane, 50 points each."""
    return small_example(50, seed=0)


@pytest.fixture
def noise():
    rng = np.random.default_rng(7)
    return rng.normal(size=(60, 8))
