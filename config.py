import numbers
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from errors import InvalidConfiguration

INITS = ('pca', 'random')


def auto_num_nbrs(num_points):
    """Neighbor count used when none is given, grows slowly past 10k points."""
    if num_points <= 10000:
        k = 10
    else:
        k = int(round(10 + 15 * (np.log10(num_points) - 4)))
    return max(1, min(k, num_points - 1))


def split_iters(num_iters):
    """Split a total iteration count into the three optimization phases.

    A triple is taken as-is. A single total T is split 2/9, 2/9, 5/9 so that
    the default of 450 becomes (100, 100, 250).
    """
    if isinstance(num_iters, numbers.Integral):
        first = int(round(2 * num_iters / 9))
        return first, first, int(num_iters) - 2 * first
    if isinstance(num_iters, (str, bytes)):
        raise InvalidConfiguration(f'num_iters must be an int or three phase lengths, got {num_iters!r}')
    try:
        phases = tuple(int(p) for p in num_iters)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f'num_iters must be an int or three phase lengths, got {num_iters!r}')
    if len(phases) != 3:
        raise InvalidConfiguration(f'num_iters must be an int or three phase lengths, got {num_iters}')
    return phases


@dataclass
class Configuration:
    """
    Options for a PaCMAP run.

    Attributes:
        dim: number of output dimensions
        num_nbrs: neighbor pairs per point, None picks a size dependent default
        mid_near_ratio: mid-near pairs per neighbor pair
        further_ratio: further pairs per neighbor pair
        num_iters: total iterations or a (t1, t2, t3) triple of phase lengths
        learning_rate: Adam step size
        seed: seed for pair sampling, random init and truncated SVD
        init: 'pca' or 'random'
        apply_pca: reduce inputs wider than pca_dims with truncated SVD
        pca_dims: width the input is reduced to when apply_pca is set
        n_jobs: workers for the nearest neighbor search
        snapshots: iterations at which a copy of the embedding is kept
    """
    dim: int = 2
    num_nbrs: Optional[int] = None
    mid_near_ratio: float = 0.5
    further_ratio: float = 2.0
    num_iters: Union[int, Tuple[int, int, int]] = (100, 100, 250)
    learning_rate: float = 1.0
    seed: Optional[int] = None
    init: str = 'pca'
    apply_pca: bool = True
    pca_dims: int = 100
    n_jobs: Optional[int] = None
    snapshots: Optional[Sequence[int]] = None

    @property
    def phases(self):
        return split_iters(self.num_iters)

    @property
    def total_iters(self):
        return sum(self.phases)

    def num_mid_near(self, num_nbrs):
        return int(round(num_nbrs * self.mid_near_ratio))

    def num_further(self, num_nbrs):
        return int(round(num_nbrs * self.further_ratio))

    def validate(self):
        _check_int(self.dim, 'dim', minimum=1)
        if self.num_nbrs is not None:
            _check_int(self.num_nbrs, 'num_nbrs', minimum=1)
        for name in ('mid_near_ratio', 'further_ratio'):
            value = getattr(self, name)
            if not isinstance(value, numbers.Real) or not np.isfinite(value) or value < 0:
                raise InvalidConfiguration(f'{name} must be a finite non-negative number, got {value!r}')

        phases = self.phases
        if any(p < 0 for p in phases):
            raise InvalidConfiguration(f'phase lengths must be non-negative, got {phases}')
        if sum(phases) < 1:
            raise InvalidConfiguration(f'num_iters must be at least 1, got {self.num_iters!r}')

        if not isinstance(self.learning_rate, numbers.Real) or not self.learning_rate > 0:
            raise InvalidConfiguration(f'learning_rate must be positive, got {self.learning_rate!r}')
        if self.seed is not None:
            _check_int(self.seed, 'seed', minimum=0)
            if self.seed >= 2**64:
                raise InvalidConfiguration(f'seed must fit in 64 bits, got {self.seed}')
        if self.init not in INITS:
            raise InvalidConfiguration(f'The given init: "{self.init}" is not supported. Try "pca" or "random"')
        _check_int(self.pca_dims, 'pca_dims', minimum=1)
        if self.snapshots is not None:
            for itr in self.snapshots:
                _check_int(itr, 'snapshot iteration', minimum=0)
                if itr >= sum(phases):
                    raise InvalidConfiguration(f'snapshot iteration {itr} is past the last iteration {sum(phases) - 1}')
        return self


def _check_int(value, name, minimum):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidConfiguration(f'{name} must be an integer, got {value!r}')
    if value < minimum:
        raise InvalidConfiguration(f'{name} must be >= {minimum}, got {value}')
