import numpy as np
from sklearn.decomposition import PCA

from errors import DimensionMismatch, InvalidConfiguration

# spread of the first coordinate after a pca start
PCA_SCALE = 0.01
# half width of the box a random start is drawn from
RANDOM_HALF_WIDTH = 0.005


def pca_init(data, dim, seed=None):
    num_points, num_features = data.shape
    # pca yields at most min(N, D) components, the rest start in the random box
    components = min(dim, num_points, num_features)
    projected = PCA(n_components=components, svd_solver='full').fit_transform(data)
    spread = np.std(projected[:, 0])
    if spread > 0:
        projected = PCA_SCALE * projected / spread
    if components < dim:
        projected = np.hstack((projected, random_init(num_points, dim - components, seed)))
    return projected


def random_init(num_points, dim, seed=None):
    rng = np.random.default_rng(seed)
    return (rng.random((num_points, dim)) - .5) * (2 * RANDOM_HALF_WIDTH)


def initialize(data, dim, init='pca', seed=None):
    """Starting embedding: pca projection, uniform random box, or a given array."""
    num_points = data.shape[0]
    if isinstance(init, str):
        if init == 'pca':
            return pca_init(data, dim, seed)
        elif init == 'random':
            return random_init(num_points, dim, seed)
        raise InvalidConfiguration(f'The given init: "{init}" is not supported. Try "pca" or "random"')

    try:
        projected = np.array(init, dtype=np.float64)
    except ValueError as e:
        raise DimensionMismatch(f'initial embedding is not a rectangular array: {e}') from e
    if projected.shape != (num_points, dim):
        raise DimensionMismatch(f'initial embedding has shape {projected.shape}, expected {(num_points, dim)}')
    if not np.all(np.isfinite(projected)):
        raise InvalidConfiguration('initial embedding contains non-finite values')
    return projected
