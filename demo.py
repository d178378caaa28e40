"""
Download a digits dataset, embed it with PaCMAP and save an interactive plot.

    pacmap-demo --dataset usps --output pacmap_visualization.html
    pacmap-demo --dataset mnist --num-points 5000 --png mnist.png --verbose
"""
import argparse
import logging
import sys
import time

from data import load_dataset
from embedding import PaCMAP
from errors import EmbeddingError
from plot import animate, plot, scatter_html
from quality import average_jaccard

logger = logging.getLogger('demo')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Embed the USPS or MNIST digits with PaCMAP')
    parser.add_argument('--dataset', choices=['usps', 'mnist'], default='usps')
    parser.add_argument('--num-points', type=int, default=None,
                        help='use only the first N samples')
    parser.add_argument('--num-nbrs', type=int, default=10)
    parser.add_argument('--mid-near-ratio', type=float, default=0.5)
    parser.add_argument('--further-ratio', type=float, default=2.0)
    parser.add_argument('--iters', type=int, default=450,
                        help='total iterations, split 2/9, 2/9, 5/9 across the three phases')
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--init', choices=['pca', 'random'], default='pca')
    parser.add_argument('--data-dir', default='data')
    parser.add_argument('--output', default='pacmap_visualization.html')
    parser.add_argument('--png', default=None, help='also save a static scatter plot')
    parser.add_argument('--animation', default=None,
                        help='save a gif of the embedding every 10 iterations')
    parser.add_argument('--verbose', action='store_true')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    logger.info(f'Downloading and loading {args.dataset}...')
    data, labels = load_dataset(args.dataset, num_points=args.num_points, root=args.data_dir)

    snapshots = list(range(0, args.iters, 10)) if args.animation else None
    logger.info(f'Running PaCMAP on data with shape {data.shape}...')
    start = time.perf_counter()
    try:
        reducer = PaCMAP(dim=2,
                         num_nbrs=args.num_nbrs,
                         mid_near_ratio=args.mid_near_ratio,
                         further_ratio=args.further_ratio,
                         num_iters=args.iters,
                         seed=args.seed,
                         init=args.init,
                         snapshots=snapshots,
                         verbose=args.verbose,
                         pbar=args.verbose)
        projected = reducer.fit_transform(data)
    except EmbeddingError as e:
        logger.error(f'PaCMAP failed: {e}')
        return 1
    logger.info(f'PaCMAP completed in {(time.perf_counter() - start) * 1000:.0f} ms')
    logger.info(f'average jaccard distance of {args.num_nbrs}-neighborhoods: '
                f'{average_jaccard(data, projected, args.num_nbrs):.4f}')

    logger.info('Saving visualization...')
    scatter_html(projected, labels, args.output)
    if args.png:
        plot(projected, labels=labels, filename=args.png)
    if args.animation:
        animate(reducer.snapshots_, labels, args.animation)

    logger.info(f'Done! Visualization saved to {args.output}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
