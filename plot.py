import logging

import numpy as np
import plotly.graph_objects as go
from matplotlib import pyplot as plt
from matplotlib.animation import FuncAnimation

logger = logging.getLogger(__name__)


def scatter_html(projected, labels, filename, title='PaCMAP Embedding', width=600, height=600):
    """Interactive scatter of a 2-d embedding, points colored by label."""
    projected = np.asarray(projected)
    scatter = go.Scatter(x=projected[:, 0], y=projected[:, 1], mode='markers',
                         marker=dict(color=np.asarray(labels), showscale=True, size=2))
    fig = go.Figure(data=[scatter])
    fig.update_layout(title=title, width=width, height=height)
    fig.write_html(str(filename))
    logger.info(f'saved {filename}')
    return fig


def plot(projected, labels=None, filename=None):
    fig, ax = plt.subplots(figsize=(10,10))
    ax.scatter(projected[:,0], projected[:,1], c=labels, s=8)
    if filename is None:
        plt.show(block=True)
    else:
        fig.savefig(filename)
        plt.close(fig)
    return fig


def animate(snapshots, labels, save_file, interval=50):
    """Write an animation of the embedding at each snapshot, in iteration order."""
    frames = [snapshots[itr] for itr in sorted(snapshots)]
    if not frames:
        raise ValueError('no snapshots to animate')

    fig, ax = plt.subplots()
    fig.set_size_inches(6, 6)
    ln = ax.scatter(frames[0][:,0], frames[0][:,1], c=labels, s=3)

    def init():
        return ln,

    def update(frame):
        ln.set_offsets(frames[frame])
        ax.ignore_existing_data_limits = True
        ax.update_datalim(ln.get_datalim(ax.transData))
        ax.autoscale_view()
        return ln,

    ani = FuncAnimation(fig, update, frames=range(len(frames)),
                        init_func=init, interval=interval, repeat=False)
    ani.save(filename=str(save_file), writer='pillow')
    plt.close(fig)
    return ani
