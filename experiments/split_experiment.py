"""
Train/test splitting experiment on the Iris and Breast Cancer datasets.

Compares class proportions in the test set for plain shuffled splits and
stratified splits across several random seeds.
"""

import sys
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from sklearn.datasets import load_iris, load_breast_cancer

from mlprim.split_data import split

OUTPUT_DIR = Path(__file__).parent
logging.basicConfig(level=logging.INFO)


def load_datasets():
    """Load datasets, transposed so that samples are columns."""
    datasets = {}
    for name, loader in [("iris", load_iris), ("breast_cancer", load_breast_cancer)]:
        data = loader()
        datasets[name] = (data.data.T, data.target)
        print(f"{name}: {data.data.shape[0]} samples, {data.data.shape[1]} features")
    return datasets


def experiment_class_proportions(datasets, test_ratio=0.3, seeds=range(20)):
    """Deviation of test-set class proportions from the full dataset."""
    print("\n" + "="*60)
    print(f"Class proportions in the test set (test_ratio={test_ratio})")
    print("="*60)

    results = []
    for name, (X, y) in datasets.items():
        overall = np.bincount(y) / len(y)

        for seed in seeds:
            for stratify in (False, True):
                result = split(X, y, test_ratio=test_ratio, stratify=stratify,
                               random_state=seed)
                test_props = np.bincount(result.test_labels, minlength=len(overall))
                test_props = test_props / max(1, result.test_labels.shape[0])

                results.append({
                    'dataset': name,
                    'seed': seed,
                    'stratify': stratify,
                    'test_size': result.test.shape[1],
                    'max_deviation': float(np.max(np.abs(test_props - overall)))
                })

    return pd.DataFrame(results)


def plot_deviation(results):
    fig, axes = plt.subplots(1, results['dataset'].nunique(), figsize=(12, 4))

    for ax, (name, group) in zip(np.atleast_1d(axes), results.groupby('dataset')):
        for stratify, sub in group.groupby('stratify'):
            label = 'stratified' if stratify else 'plain'
            ax.plot(sub['seed'], sub['max_deviation'], marker='o', label=label, linewidth=2)
        ax.set_xlabel('Seed')
        ax.set_ylabel('Max |test proportion - overall proportion|')
        ax.set_title(name)
        ax.legend()
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    path = OUTPUT_DIR / 'split_class_proportions.png'
    plt.savefig(path, dpi=150)
    print(f"\nSaved plot: {path.name}")


def main():
    """Run the splitting experiments."""
    datasets = load_datasets()

    results = experiment_class_proportions(datasets)
    results.to_csv(OUTPUT_DIR / 'split_class_proportions.csv', index=False)

    summary = results.groupby(['dataset', 'stratify'])['max_deviation'].agg(['mean', 'max'])
    print("\nSummary:")
    print(summary.to_string())

    plot_deviation(results)


if __name__ == "__main__":
    main()
