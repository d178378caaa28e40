import numpy as np

# floor for the local scale of a point so duplicated points don't divide by zero
MIN_SCALE = 1e-10


def euclidean_to(data, i, candidates):
    """Euclidean distances from row i to each of the candidate rows."""
    d = data[candidates] - data[i]
    return np.sqrt(np.sum(d**2, axis=1))


def local_scales(knn_dists):
    # mean distance to the 4th-6th nearest neighbors, falls back to the farthest
    # available neighbor when the neighborhood is smaller than that
    lo = min(3, knn_dists.shape[1] - 1)
    sig = np.mean(knn_dists[:, lo:6], axis=1)
    return np.maximum(sig, MIN_SCALE)


def scaled_distances(knn_dists, knn_idxs):
    """
    Rescale squared neighbor distances by the local scale at both endpoints.

    d_ij^2 / (sig_i * sig_j), this puts neighbors in dense and sparse regions
    of the data on a comparable footing.
    """
    sig = local_scales(knn_dists)
    return knn_dists**2 / sig[:, np.newaxis] / sig[knn_idxs]


def pair_offsets(projected, pairs):
    """Offsets y_i - y_j and the shifted squared distances 1 + |y_i - y_j|^2."""
    y_ij = projected[pairs[:, 0]] - projected[pairs[:, 1]]
    d_ij = 1.0 + np.sum(y_ij**2, axis=1)
    return y_ij, d_ij
