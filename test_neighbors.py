import numpy as np
import pytest

from distances import local_scales, scaled_distances
from errors import InvalidConfiguration
from neighbors import (FURTHER, MID_NEAR, NEIGHBOR, check_pairs, neighbor_pairs,
                       preprocess, sample_pairs)


def unordered(pairs):
    return {tuple(sorted(p)) for p in pairs.tolist()}


@pytest.fixture
def pairs(clusters):
    data, _ = clusters
    return sample_pairs(preprocess(data), num_nbrs=10, num_mn=5, num_fp=20, seed=0)


def test_pair_counts(pairs):
    assert pairs.neighbors.shape == (500 * 10, 2)
    assert pairs.mid_near.shape == (500 * 5, 2)
    assert pairs.further.shape == (500 * 20, 2)
    assert len(pairs) == 500 * 35


def test_no_self_pairs(pairs):
    for category, p in pairs.categories().items():
        assert not np.any(p[:, 0] == p[:, 1]), category


def test_categories_are_disjoint(pairs):
    nbr = unordered(pairs.neighbors)
    mn = unordered(pairs.mid_near)
    fp = unordered(pairs.further)
    assert not nbr & mn
    assert not nbr & fp
    assert not mn & fp
    # each mid-near and further pair is drawn once
    assert len(mn) == len(pairs.mid_near)
    assert len(fp) == len(pairs.further)


def test_pairs_are_read_only(pairs):
    with pytest.raises(ValueError):
        pairs.neighbors[0, 0] = 1
    assert set(pairs.categories()) == {NEIGHBOR, MID_NEAR, FURTHER}


def test_same_seed_same_pairs(clusters):
    data = preprocess(clusters[0])
    a = sample_pairs(data, num_nbrs=10, num_mn=5, num_fp=20, seed=3)
    b = sample_pairs(data, num_nbrs=10, num_mn=5, num_fp=20, seed=3)
    for category in a.categories():
        np.testing.assert_array_equal(a.categories()[category], b.categories()[category])


def test_seed_changes_sampled_pairs(clusters):
    data = preprocess(clusters[0])
    a = sample_pairs(data, num_nbrs=10, num_mn=5, num_fp=20, seed=3)
    b = sample_pairs(data, num_nbrs=10, num_mn=5, num_fp=20, seed=4)
    np.testing.assert_array_equal(a.neighbors, b.neighbors)
    assert not np.array_equal(a.further, b.further)


def test_neighbors_stay_in_cluster(separated):
    data, labels = separated
    nbrs = neighbor_pairs(preprocess(data), num_nbrs=10)
    assert np.all(labels[nbrs[:, 0]] == labels[nbrs[:, 1]])


def test_mid_near_is_second_closest_candidate_not_a_neighbor(clusters):
    data = preprocess(clusters[0])
    pairs = sample_pairs(data, num_nbrs=10, num_mn=5, num_fp=0, seed=1)
    assert len(pairs.further) == 0
    nbr = unordered(pairs.neighbors)
    assert all(p not in nbr for p in unordered(pairs.mid_near))


def test_too_few_points_for_neighbors(noise):
    with pytest.raises(InvalidConfiguration):
        neighbor_pairs(noise[:10], num_nbrs=10)


def test_smallest_dataset_has_only_neighbor_pairs(noise):
    # 11 points and 10 neighbors: every point already pairs with all others
    pairs = sample_pairs(preprocess(noise[:11]), num_nbrs=10, num_mn=5, num_fp=20, seed=0)
    assert pairs.neighbors.shape == (110, 2)
    assert pairs.mid_near.shape == (0, 2)
    assert pairs.further.shape == (0, 2)


def test_further_pairs_capped_by_available_points(noise):
    pairs = sample_pairs(preprocess(noise[:15]), num_nbrs=3, num_mn=1, num_fp=50, seed=0)
    fp = unordered(pairs.further)
    assert len(fp) == len(pairs.further)
    assert not fp & unordered(pairs.neighbors)


def test_provided_neighbor_pairs(noise):
    given = np.array([[0, 1], [1, 2], [2, 3]])
    pairs = sample_pairs(preprocess(noise), num_nbrs=10, num_mn=2, num_fp=4, seed=0, pair_neighbors=given)
    np.testing.assert_array_equal(pairs.neighbors, given)
    assert not unordered(pairs.further) & unordered(given)


@pytest.mark.parametrize('bad', [
    np.array([[0, 0]]),
    np.array([[0, 60]]),
    np.array([[-1, 2]]),
    np.array([0, 1, 2]),
    np.array([[0.0, 1.0]]),
])
def test_check_pairs_rejects(bad):
    with pytest.raises(InvalidConfiguration):
        check_pairs(bad, 60)


def test_local_scales_floor_duplicates():
    dists = np.zeros((6, 6))
    idxs = np.tile(np.arange(6), (6, 1))
    assert np.all(local_scales(dists) == 1e-10)
    assert np.all(np.isfinite(scaled_distances(dists, idxs)))


def test_local_scales_short_neighborhood():
    dists = np.array([[1.0, 2.0], [3.0, 4.0]])
    np.testing.assert_allclose(local_scales(dists), [2.0, 4.0])


def test_scaled_distances():
    dists = np.array([[1.0, 2.0, 2.0, 2.0, 2.0, 2.0],
                      [2.0, 4.0, 4.0, 4.0, 4.0, 4.0]])
    idxs = np.array([[1, 1, 1, 1, 1, 1],
                     [0, 0, 0, 0, 0, 0]])
    # sig = (2, 4)
    np.testing.assert_allclose(scaled_distances(dists, idxs)[0, 0], 1.0 / 2.0 / 4.0)
    np.testing.assert_allclose(scaled_distances(dists, idxs)[1, 1], 16.0 / 4.0 / 2.0)


def test_preprocess_narrow_data_is_scaled_and_centered(noise):
    data = preprocess(noise * 100 + 5)
    assert data.shape == noise.shape
    np.testing.assert_allclose(data.mean(axis=0), 0, atol=1e-12)
    assert np.all(np.ptp(data, axis=0) <= 1.0 + 1e-12)


def test_preprocess_wide_data_is_reduced():
    rng = np.random.default_rng(0)
    data = rng.normal(size=(150, 120))
    assert preprocess(data, pca_dims=100, seed=0).shape == (150, 100)
    assert preprocess(data, apply_pca=False).shape == (150, 120)


def test_preprocess_constant_data():
    data = preprocess(np.full((5, 3), 7.0))
    np.testing.assert_array_equal(data, 0)
