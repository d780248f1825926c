#!/usr/bin/env python3
"""
Generate plots from reduce phase benchmark results.
"""

import json
import sys
from collections import defaultdict
from pathlib import Path

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

# Configuration
PLOTS_DIR = Path("benchmark_results/plots")


def load_results(json_file):
    """Load benchmark results from JSON file."""
    with open(json_file, 'r') as f:
        return json.load(f)


def aggregate_runs(results):
    """
    Aggregate multiple runs of the same configuration.
    Returns dict: (benchmark_name, input_size, partitions) -> {avg_runtime, std_runtime, ...}
    """
    by_config = defaultdict(list)

    for r in results:
        by_config[(r['benchmark_name'], r['input_size'], r['partitions'])].append(r)

    aggregated = {}
    for (name, size, partitions), runs in by_config.items():
        runtimes = [r['runtime_seconds'] for r in runs]
        rates = [r['records_per_second'] for r in runs]
        rss = [r['rss_delta_bytes'] for r in runs]

        aggregated[(name, size, partitions)] = {
            'benchmark_name': name,
            'input_size': size,
            'partitions': partitions,
            'avg_runtime': np.mean(runtimes),
            'std_runtime': np.std(runtimes),
            'avg_rate': np.mean(rates),
            'max_rss_delta_mb': np.max(rss) / 1024 / 1024,
            'consistent': all(r['consistent'] for r in runs),
            'num_runs': len(runs)
        }

    return aggregated


def plot_input_size_scaling(aggregated, output_file):
    """Plot runtime vs input size, one panel per reducer, one line per partition count."""
    names = sorted({k[0] for k in aggregated})
    if not names:
        print("⚠️  No benchmark data found")
        return

    cols = min(3, len(names))
    rows = int(np.ceil(len(names) / cols))
    fig, axes = plt.subplots(rows, cols, figsize=(6 * cols, 4.5 * rows), squeeze=False)

    for ax, name in zip(axes.flat, names):
        partition_counts = sorted({k[2] for k in aggregated if k[0] == name})
        for partitions in partition_counts:
            data = sorted((v['input_size'], v['avg_runtime'], v['std_runtime'])
                          for k, v in aggregated.items()
                          if k[0] == name and k[2] == partitions)
            sizes, runtimes, stds = zip(*data)
            ax.errorbar(sizes, runtimes, yerr=stds, marker='o', capsize=4,
                        linewidth=2, markersize=6, label=f'{partitions} partition(s)')
        ax.set_xscale('log')
        ax.set_yscale('log')
        ax.set_title(name, fontsize=12, fontweight='bold')
        ax.set_xlabel('Input records')
        ax.set_ylabel('Runtime (seconds)')
        ax.grid(True, alpha=0.3)
        ax.legend(fontsize=9)

    for ax in list(axes.flat)[len(names):]:
        ax.set_visible(False)

    fig.suptitle('Reduce Runtime: Input Size Scaling', fontsize=14, fontweight='bold')
    fig.tight_layout()
    fig.savefig(output_file, dpi=200, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close(fig)


def plot_rereduce_overhead(aggregated, output_file):
    """Plot runtime relative to a single pass at the largest input size."""
    largest = max((k[1] for k in aggregated), default=None)
    if largest is None:
        print("⚠️  No benchmark data found")
        return

    names = sorted({k[0] for k in aggregated if k[1] == largest})
    partition_counts = sorted({k[2] for k in aggregated if k[1] == largest})
    if 1 not in partition_counts or len(partition_counts) < 2:
        print("⚠️  Insufficient data for re-reduce overhead plot")
        return

    width = 0.8 / len(partition_counts)
    x = np.arange(len(names))

    plt.figure(figsize=(12, 6))
    for i, partitions in enumerate(partition_counts):
        ratios = []
        for name in names:
            base = aggregated.get((name, largest, 1))
            run = aggregated.get((name, largest, partitions))
            if base and run and base['avg_runtime'] > 0:
                ratios.append(run['avg_runtime'] / base['avg_runtime'])
            else:
                ratios.append(0)
        plt.bar(x + i * width, ratios, width, label=f'{partitions} partition(s)')

    plt.axhline(1.0, linestyle='--', color='gray', alpha=0.7)
    plt.xticks(x + width * (len(partition_counts) - 1) / 2, names, rotation=30, ha='right')
    plt.ylabel('Runtime relative to single pass', fontsize=12)
    plt.title(f'Re-reduce Overhead ({largest} records)', fontsize=14, fontweight='bold')
    plt.legend(fontsize=10)
    plt.grid(True, axis='y', alpha=0.3)
    plt.tight_layout()
    plt.savefig(output_file, dpi=200, bbox_inches='tight')
    print(f"✓ Saved: {output_file}")
    plt.close()


def generate_summary_table(aggregated, output_file):
    """Generate a markdown table summarizing all results."""
    lines = [
        "# Benchmark Results Summary\n",
        "| Benchmark | Records | Partitions | Avg Runtime (s) | Std Dev | Records/s | Max RSS Δ (MB) | Consistent |",
        "|-----------|---------|------------|-----------------|---------|-----------|----------------|------------|"
    ]

    for key in sorted(aggregated.keys()):
        v = aggregated[key]
        lines.append(
            f"| {v['benchmark_name']:<21} | {v['input_size']:>7} | "
            f"{v['partitions']:>10} | {v['avg_runtime']:>15.4f} | "
            f"{v['std_runtime']:>7.4f} | {v['avg_rate']:>9.0f} | "
            f"{v['max_rss_delta_mb']:>14.2f} | {'yes' if v['consistent'] else 'NO':>10} |"
        )

    with open(output_file, 'w') as f:
        f.write('\n'.join(lines))

    print(f"✓ Saved: {output_file}")


def main():
    """Generate all plots from benchmark results."""
    if len(sys.argv) < 2:
        print("Usage: python plot_results.py <results.json>")
        print("\nExample:")
        print("  python plot_results.py benchmark_results/benchmark_results_20250113_120000.json")
        sys.exit(1)

    json_file = sys.argv[1]

    if not Path(json_file).exists():
        print(f"❌ File not found: {json_file}")
        sys.exit(1)

    print(f"Loading results from: {json_file}")
    results = load_results(json_file)
    print(f"✓ Loaded {len(results)} benchmark results")

    aggregated = aggregate_runs(results)
    print(f"✓ Aggregated into {len(aggregated)} unique configurations")

    PLOTS_DIR.mkdir(parents=True, exist_ok=True)

    print("\nGenerating plots...")
    plot_input_size_scaling(aggregated, PLOTS_DIR / "1_input_size_scaling.png")
    plot_rereduce_overhead(aggregated, PLOTS_DIR / "2_rereduce_overhead.png")

    generate_summary_table(aggregated, PLOTS_DIR / "results_table.md")

    print(f"\n{'='*70}")
    print(f"All plots saved to: {PLOTS_DIR}/")
    print(f"{'='*70}")


if __name__ == "__main__":
    main()
