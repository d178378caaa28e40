import logging
import math

import numpy as np
from tqdm import tqdm

from distances import pair_offsets
from errors import NumericalFailure

logger = logging.getLogger(__name__)

# mid-near weight at the first iteration
W_MN_INIT = 1000.0


class AnnealingSchedule():
    """
    Pair weights over the three phases of an optimization run.

    Phase one pulls mid-near pairs hard to lay out the global structure, the
    mid-near weight falls linearly from 1000 to 3 over it. Phase two holds
    everything steady with strong neighbor attraction. Phase three drops the
    mid-near pairs entirely and refines local structure.
    """

    def __init__(self, phases, w_mn_init=W_MN_INIT):
        self.phases = tuple(phases)
        self.w_mn_init = w_mn_init

    def __len__(self):
        return sum(self.phases)

    def weights(self, itr):
        """(w_neighbors, w_mid_near, w_further) at iteration itr."""
        first, second, _ = self.phases
        if itr < first:
            frac = itr / first
            w_mn = (1 - frac) * self.w_mn_init + frac * 3.0
            return 2.0, w_mn, 1.0
        elif itr < first + second:
            return 3.0, 3.0, 1.0
        return 1.0, 0.0, 1.0


def pacmap_loss(projected, pairs, weights):
    w_nbr, w_mn, w_fp = weights
    _, d_nbr = pair_offsets(projected, pairs.neighbors)
    _, d_mn = pair_offsets(projected, pairs.mid_near)
    _, d_fp = pair_offsets(projected, pairs.further)
    return (w_nbr * np.sum(d_nbr / (10.0 + d_nbr))
            + w_mn * np.sum(d_mn / (10000.0 + d_mn))
            + w_fp * np.sum(1.0 / (1.0 + d_fp)))


def _scatter(grad, pairs, coeff, y_ij):
    # endpoints receive equal and opposite contributions
    contrib = coeff[:, np.newaxis] * y_ij
    np.add.at(grad, pairs[:, 0], contrib)
    np.add.at(grad, pairs[:, 1], -contrib)


def pacmap_grad(projected, pairs, weights):
    """
    Gradient of the weighted pair loss and the loss itself.

    With d = 1 + |y_i - y_j|^2 the per pair losses are
        neighbor  w * d / (10 + d)
        mid-near  w * d / (10000 + d)
        further   w / (1 + d)
    """
    w_nbr, w_mn, w_fp = weights
    grad = np.zeros_like(projected)

    y_ij, d_ij = pair_offsets(projected, pairs.neighbors)
    loss = w_nbr * np.sum(d_ij / (10.0 + d_ij))
    _scatter(grad, pairs.neighbors, w_nbr * 20.0 / (10.0 + d_ij)**2, y_ij)

    if w_mn > 0:
        y_ij, d_ij = pair_offsets(projected, pairs.mid_near)
        loss += w_mn * np.sum(d_ij / (10000.0 + d_ij))
        _scatter(grad, pairs.mid_near, w_mn * 20000.0 / (10000.0 + d_ij)**2, y_ij)

    y_ij, d_ij = pair_offsets(projected, pairs.further)
    loss += w_fp * np.sum(1.0 / (1.0 + d_ij))
    _scatter(grad, pairs.further, -w_fp * 2.0 / (1.0 + d_ij)**2, y_ij)

    return grad, loss


class Adam():
    def __init__(self, shape, lr=1.0, beta1=0.9, beta2=0.999, eps=1e-7):
        self.lr = lr
        self.beta1 = beta1
        self.beta2 = beta2
        self.eps = eps
        self.m = np.zeros(shape)
        self.v = np.zeros(shape)

    def step(self, projected, grad, itr):
        """Update projected in place with bias corrected moments."""
        lr_t = self.lr * math.sqrt(1.0 - self.beta2**(itr + 1)) / (1.0 - self.beta1**(itr + 1))
        self.m += (1 - self.beta1) * (grad - self.m)
        self.v += (1 - self.beta2) * (grad**2 - self.v)
        projected -= lr_t * self.m / (np.sqrt(self.v) + self.eps)
        return projected


def optimize(projected, pairs, schedule, lr=1.0, snapshots=None, verbose=False, pbar=False):
    """
    Run the full schedule on projected, which is updated in place.

    Returns the final embedding, the snapshots taken at the requested
    iterations and the loss of the last iteration.
    """
    adam = Adam(projected.shape, lr=lr)
    wanted = set(snapshots or ())
    taken = {}
    loss = None

    iter_range = range(len(schedule))
    if pbar:
        iter_range = tqdm(iter_range, 'Iterations')
    for itr in iter_range:
        weights = schedule.weights(itr)
        grad, loss = pacmap_grad(projected, pairs, weights)
        adam.step(projected, grad, itr)

        if not np.isfinite(loss) or not np.all(np.isfinite(projected)):
            raise NumericalFailure(f'embedding is no longer finite at iteration {itr}', itr=itr)
        if itr in wanted:
            taken[itr] = projected.copy()
        if verbose and (itr + 1) % 10 == 0:
            logger.info(f'iteration {itr + 1:4d}: loss {loss:.6f}  weights {weights}')

    return projected, taken, loss
