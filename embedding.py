import logging
from dataclasses import fields

import numpy as np

from config import Configuration, auto_num_nbrs
from errors import DimensionMismatch, InvalidConfiguration
from initialize import initialize
from neighbors import preprocess, sample_pairs
from optimize import AnnealingSchedule, optimize

logger = logging.getLogger(__name__)


def as_matrix(data):
    """Turn data into an N x D float64 matrix, rejecting ragged or non 2-d input."""
    try:
        data = np.array(data, dtype=np.float64)
    except ValueError as e:
        raise DimensionMismatch(f'feature vectors do not share one length: {e}') from e
    if data.ndim != 2:
        raise DimensionMismatch(f'expected an (N, D) matrix, got an array with shape {data.shape}')
    if data.shape[1] < 1:
        raise DimensionMismatch('feature vectors are empty')
    if not np.all(np.isfinite(data)):
        raise InvalidConfiguration('data contains NaN or infinite values')
    return data


class PaCMAP():
    """
    Pairwise Controlled Manifold Approximation.

    Samples neighbor, mid-near and further pairs from the data once and then
    moves a low dimensional embedding under an annealed, pair weighted loss.
    After fit_transform the pairs, the snapshots and the final loss are kept
    on the instance as pairs_, snapshots_ and loss_.
    """

    def __init__(self, dim=2, num_nbrs=None, mid_near_ratio=0.5, further_ratio=2.0,
                 num_iters=(100, 100, 250), learning_rate=1.0, seed=None, init='pca',
                 apply_pca=True, pca_dims=100, n_jobs=None, snapshots=None,
                 verbose=False, pbar=False):
        self.config = Configuration(dim=dim, num_nbrs=num_nbrs, mid_near_ratio=mid_near_ratio,
                                    further_ratio=further_ratio, num_iters=num_iters,
                                    learning_rate=learning_rate, seed=seed, init=init,
                                    apply_pca=apply_pca, pca_dims=pca_dims, n_jobs=n_jobs,
                                    snapshots=snapshots).validate()
        self.verbose = verbose
        self.pbar = pbar

        self.pairs_ = None
        self.snapshots_ = None
        self.loss_ = None

    def num_nbrs_for(self, num_points):
        if self.config.num_nbrs is None:
            if num_points < 2:
                raise InvalidConfiguration(f'{num_points} points is too few to embed')
            return auto_num_nbrs(num_points)
        return self.config.num_nbrs

    def fit_transform(self, data, init=None, pair_neighbors=None):
        """
        Embed data, an (N, D) matrix, into config.dim dimensions.

        init overrides the configured start and may be an (N, dim) array.
        pair_neighbors replaces the nearest neighbor search with the given
        (m, 2) index pairs. The returned array is read only.
        """
        config = self.config
        data = as_matrix(data)
        num_points = data.shape[0]
        num_nbrs = self.num_nbrs_for(num_points)
        if num_points < num_nbrs + 1:
            raise InvalidConfiguration(
                f'{num_points} points is too few for {num_nbrs} neighbors, need at least {num_nbrs + 1}')

        if self.verbose:
            logger.info(f'embedding {data.shape} into {config.dim} dimensions with {num_nbrs} neighbors')

        data = preprocess(data, apply_pca=config.apply_pca, pca_dims=config.pca_dims, seed=config.seed)
        self.pairs_ = sample_pairs(data,
                                   num_nbrs=num_nbrs,
                                   num_mn=config.num_mid_near(num_nbrs),
                                   num_fp=config.num_further(num_nbrs),
                                   seed=config.seed,
                                   n_jobs=config.n_jobs,
                                   pair_neighbors=pair_neighbors,
                                   verbose=self.verbose)

        projected = initialize(data, config.dim, config.init if init is None else init, seed=config.seed)
        schedule = AnnealingSchedule(config.phases)
        projected, self.snapshots_, self.loss_ = optimize(projected, self.pairs_, schedule,
                                                          lr=config.learning_rate,
                                                          snapshots=config.snapshots,
                                                          verbose=self.verbose,
                                                          pbar=self.pbar)
        if self.verbose:
            logger.info(f'final loss: {self.loss_:.6f}')

        projected.setflags(write=False)
        return projected


def fit_transform(data, config=None, **options):
    """Embed data with a Configuration, keyword options, or both (options win)."""
    verbose = options.pop('verbose', False)
    pbar = options.pop('pbar', False)
    if config is not None:
        options = {**{f.name: getattr(config, f.name) for f in fields(config)}, **options}
    return PaCMAP(verbose=verbose, pbar=pbar, **options).fit_transform(data)
