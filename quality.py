import numpy as np
from sklearn.metrics import pairwise_distances
from sklearn.neighbors import NearestNeighbors


def knn_sets(data, num_nbrs):
    nn = NearestNeighbors(n_neighbors=num_nbrs).fit(data)
    _, idxs = nn.kneighbors()
    return idxs


def average_jaccard(data, projected, num_nbrs=10):
    """
    Mean Jaccard distance between each point's neighborhood in the data and
    in the embedding. 0 means every neighborhood survived the projection.
    """
    original = knn_sets(data, num_nbrs)
    proj = knn_sets(projected, num_nbrs)

    ajd = 0.0
    for original_nbrs, proj_nbrs in zip(original, proj):
        inter = len(set(original_nbrs) & set(proj_nbrs))
        union = len(set(original_nbrs) | set(proj_nbrs))
        ajd += (union - inter)/union
    return ajd/len(original)


def cluster_separation(projected, labels):
    """(mean intra-cluster distance, mean inter-cluster distance) over all point pairs."""
    labels = np.asarray(labels)
    dists = pairwise_distances(projected)
    same = labels[:, np.newaxis] == labels[np.newaxis, :]
    off_diag = ~np.eye(len(labels), dtype=bool)
    return dists[same & off_diag].mean(), dists[~same].mean()
