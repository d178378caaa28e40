import logging
from dataclasses import dataclass

import numpy as np
from sklearn.decomposition import TruncatedSVD
from sklearn.neighbors import NearestNeighbors

from distances import euclidean_to, scaled_distances
from errors import InvalidConfiguration

logger = logging.getLogger(__name__)

# extra neighbors fetched beyond num_nbrs so the scaled distance can reorder them
EXTRA_NBRS = 50
# candidates drawn per mid-near pair, the second closest one is kept
MID_NEAR_CANDIDATES = 6

NEIGHBOR = 'neighbor'
MID_NEAR = 'mid-near'
FURTHER = 'further'


@dataclass(frozen=True, eq=False)
class PairSet:
    """The three pair categories, each an (m, 2) array of sample indices."""
    neighbors: np.ndarray
    mid_near: np.ndarray
    further: np.ndarray

    def __post_init__(self):
        for pairs in (self.neighbors, self.mid_near, self.further):
            pairs.setflags(write=False)

    def __len__(self):
        return len(self.neighbors) + len(self.mid_near) + len(self.further)

    def categories(self):
        return {NEIGHBOR: self.neighbors, MID_NEAR: self.mid_near, FURTHER: self.further}


def preprocess(data, apply_pca=True, pca_dims=100, seed=None):
    """
    Bring the raw data into the space the pairs are sampled in.

    Wide inputs are centered and reduced to pca_dims components with a
    truncated SVD. Everything else is scaled into [0, 1] by the global min and
    max and centered per feature.
    """
    data = np.array(data, dtype=np.float64)
    num_points, num_features = data.shape
    if apply_pca and num_features > pca_dims and num_points > pca_dims:
        data -= np.mean(data, axis=0)
        tsvd = TruncatedSVD(n_components=pca_dims, random_state=seed)
        return tsvd.fit_transform(data)

    data -= np.min(data)
    spread = np.max(data)
    if spread > 0:
        data /= spread
    data -= np.mean(data, axis=0)
    return data


def neighbor_pairs(data, num_nbrs, n_jobs=None):
    """
    Pair every point with its num_nbrs closest points by scaled distance.

    The candidates are the num_nbrs + 50 nearest points in plain euclidean
    distance, re-ranked by d_ij^2 / (sig_i * sig_j).
    """
    num_points = data.shape[0]
    if num_points < num_nbrs + 1:
        raise InvalidConfiguration(
            f'{num_points} points is too few for {num_nbrs} neighbors, need at least {num_nbrs + 1}')

    num_extra = min(num_nbrs + EXTRA_NBRS, num_points - 1)
    # kneighbors() without a query excludes each point from its own neighborhood
    nn = NearestNeighbors(n_neighbors=num_extra, n_jobs=n_jobs).fit(data)
    dists, idxs = nn.kneighbors()

    scaled = scaled_distances(dists, idxs)
    order = np.argsort(scaled, axis=1, kind='stable')[:, :num_nbrs]
    nbrs = np.take_along_axis(idxs, order, axis=1)

    src = np.repeat(np.arange(num_points), num_nbrs)
    return np.stack((src, nbrs.reshape(-1)), axis=1).astype(np.int64)


def check_pairs(pairs, num_points):
    """Validate caller provided neighbor pairs."""
    pairs = np.asarray(pairs)
    if pairs.ndim != 2 or pairs.shape[1] != 2:
        raise InvalidConfiguration(f'neighbor pairs must have shape (m, 2), got {pairs.shape}')
    if not np.issubdtype(pairs.dtype, np.integer):
        raise InvalidConfiguration(f'neighbor pairs must be integer indices, got {pairs.dtype}')
    if pairs.size and (pairs.min() < 0 or pairs.max() >= num_points):
        raise InvalidConfiguration(f'neighbor pair indices must lie in [0, {num_points})')
    if np.any(pairs[:, 0] == pairs[:, 1]):
        raise InvalidConfiguration('neighbor pairs may not pair a point with itself')
    return pairs.astype(np.int64)


def _partner_sets(num_points, pairs):
    # for every point, the points it may no longer be paired with
    partners = [{i} for i in range(num_points)]
    for i, j in pairs.tolist():
        partners[i].add(j)
        partners[j].add(i)
    return partners


def _draw_excluding(rng, num_points, excluded, size):
    """Draw up to size distinct indices in [0, num_points) not in excluded."""
    available = num_points - len(excluded)
    size = min(size, available)
    if size <= 0:
        return np.empty(0, dtype=np.int64)

    if available <= 4 * size:
        # few candidates left, rejection sampling would spin
        taken = np.fromiter(excluded, dtype=np.int64, count=len(excluded))
        pool = np.setdiff1d(np.arange(num_points), taken)
        return rng.choice(pool, size=size, replace=False)

    drawn = []
    seen = set()
    while len(drawn) < size:
        for c in rng.integers(0, num_points, size=2 * size).tolist():
            if c in excluded or c in seen:
                continue
            seen.add(c)
            drawn.append(c)
            if len(drawn) == size:
                break
    return np.array(drawn, dtype=np.int64)


def _as_pairs(picked):
    if not picked:
        return np.empty((0, 2), dtype=np.int64)
    return np.array(picked, dtype=np.int64)


def mid_near_pairs(data, num_mn, partners, rng):
    num_points = data.shape[0]
    picked = []
    for i in range(num_points):
        for _ in range(num_mn):
            cands = _draw_excluding(rng, num_points, partners[i], MID_NEAR_CANDIDATES)
            if len(cands) < 2:
                break
            dists = euclidean_to(data, i, cands)
            j = int(cands[np.argsort(dists, kind='stable')[1]])
            partners[i].add(j)
            partners[j].add(i)
            picked.append((i, j))
    return _as_pairs(picked)


def further_pairs(num_points, num_fp, partners, rng):
    picked = []
    for i in range(num_points):
        for j in _draw_excluding(rng, num_points, partners[i], num_fp).tolist():
            partners[i].add(j)
            partners[j].add(i)
            picked.append((i, j))
    return _as_pairs(picked)


def sample_pairs(data, num_nbrs, num_mn, num_fp, seed=None, n_jobs=None, pair_neighbors=None, verbose=False):
    """
    Build the neighbor, mid-near and further pairs for preprocessed data.

    No unordered pair shows up in more than one category and no point is
    paired with itself. With a fixed seed the result is reproducible.
    """
    num_points = data.shape[0]
    if pair_neighbors is None:
        nbrs = neighbor_pairs(data, num_nbrs, n_jobs=n_jobs)
    else:
        nbrs = check_pairs(pair_neighbors, num_points)

    rng = np.random.default_rng(seed)
    partners = _partner_sets(num_points, nbrs)
    mn = mid_near_pairs(data, num_mn, partners, rng)
    fp = further_pairs(num_points, num_fp, partners, rng)

    if verbose:
        logger.info(f'pairs: {len(nbrs)} neighbor, {len(mn)} mid-near, {len(fp)} further')
    return PairSet(neighbors=nbrs, mid_near=mn, further=fp)
