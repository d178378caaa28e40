import io
import logging
from pathlib import Path

import numpy as np
import requests

logger = logging.getLogger(__name__)

USPS_DATA_URL = 'https://raw.githubusercontent.com/YingfanWang/PaCMAP/master/data/USPS.npy'
USPS_LABELS_URL = 'https://raw.githubusercontent.com/YingfanWang/PaCMAP/master/data/USPS_labels.npy'


def flatten(images):
    """(N, h, w, ...) -> (N, h*w*...)"""
    return images.reshape(images.shape[0], -1)


def _subset(data, labels, num_points):
    if num_points is None:
        return data, labels
    return data[:num_points], labels[:num_points]


def download_npy(url, root):
    """Fetch a .npy file, keeping a copy under root so it is only downloaded once."""
    path = Path(root) / url.rsplit('/', 1)[-1]
    if path.exists():
        return np.load(path)

    logger.info(f'downloading {url}')
    response = requests.get(url, timeout=60)
    response.raise_for_status()
    array = np.load(io.BytesIO(response.content))

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(response.content)
    return array


def load_usps(root='data', num_points=None):
    data = download_npy(USPS_DATA_URL, root)
    labels = download_npy(USPS_LABELS_URL, root)
    data = flatten(data).astype(np.float64)
    return _subset(data, labels.astype(np.int64), num_points)


def load_mnist(num_points=None, root='data'):
    from torchvision import datasets

    mnist = datasets.MNIST(root=root, train=True, download=True)
    data = flatten(mnist.data.numpy()).astype(np.float64)
    labels = mnist.targets.numpy().astype(np.int64)
    return _subset(data, labels, num_points)


DATASETS = {
    'usps': load_usps,
    'mnist': load_mnist,
}


def load_dataset(name, num_points=None, root='data'):
    try:
        loader = DATASETS[name]
    except KeyError:
        raise ValueError(f'The given dataset: "{name}" is not supported. Try one of {sorted(DATASETS)}')
    return loader(num_points=num_points, root=root)


# Random completely separated data
def small_example(N, seed=None):
    rng = np.random.default_rng(seed)
    a = rng.random((N, 2)) + 10
    b = rng.random((N, 2))
    data = np.concatenate((a, b))
    labels = np.ones(N*2, dtype=np.int64)
    labels[N:] = 2
    return data, labels


# Random completely separated data
def projection_example(N, high_dim, seed=None):
    rng = np.random.default_rng(seed)
    a = (rng.random((N, high_dim)) - .5) + 10
    b = rng.random((N, high_dim)) - .5
    data = np.concatenate((a, b))
    labels = np.ones(N*2, dtype=np.int64)
    labels[N:] = 2
    return data, labels


def gaussian_clusters(num_points=500, num_clusters=5, high_dim=64, sub_dim=10,
                      spread=10.0, noise=0.1, seed=None):
    """
    Gaussian clusters in a random sub_dim subspace of a high_dim space.

    Cluster centers are drawn with standard deviation spread, points scatter
    around them with unit variance, and isotropic noise is added after the
    subspace is embedded.
    """
    rng = np.random.default_rng(seed)
    labels = np.arange(num_points) % num_clusters
    centers = rng.normal(scale=spread, size=(num_clusters, sub_dim))
    points = centers[labels] + rng.normal(size=(num_points, sub_dim))

    # orthonormal basis of the subspace
    basis, _ = np.linalg.qr(rng.normal(size=(high_dim, sub_dim)))
    data = points @ basis.T + rng.normal(scale=noise, size=(num_points, high_dim))
    return data, labels
