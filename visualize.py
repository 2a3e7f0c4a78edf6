# visualize.py
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np


def _ensure_dir(outpath):
    dirname = os.path.dirname(outpath)
    if dirname:
        os.makedirs(dirname, exist_ok=True)


def plot_hit_rate_over_time(outcomes, outpath):
    _ensure_dir(outpath)
    # running hit rate after each access
    hits = np.cumsum(np.asarray(outcomes, dtype=float))
    running = hits / np.arange(1, len(hits) + 1) if len(hits) else hits
    plt.figure(figsize=(8,4))
    plt.plot(running, linewidth=0.8)
    plt.title("Running Hit Rate")
    plt.xlabel("Access Index")
    plt.ylabel("Hit Rate")
    plt.ylim(0.0, 1.0)
    plt.grid(True)
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()


def plot_hit_miss_rate(hit_rate, outpath):
    _ensure_dir(outpath)
    plt.figure(figsize=(4,4))
    labels = ['Hit', 'Miss']
    sizes = [hit_rate, 1.0 - hit_rate]
    plt.pie(sizes, labels=labels, autopct='%1.1f%%')
    plt.title("Cache Hit/Miss Rate")
    plt.tight_layout()
    plt.savefig(outpath)
    plt.close()
