#!/usr/bin/env python3
"""
Benchmarking script for the reduce phase functions.
Runs each reducer over synthetic inputs of several sizes, both in one pass and
split into partitions whose outputs are re-reduced, and collects timings.
"""

import argparse
import csv
import json
import logging
import math
import random
import re
import time
from datetime import datetime
from pathlib import Path

import psutil

from kv_mapreduce import index_reduce, reduce_functions
from kv_mapreduce.config import configure_logging
from kv_mapreduce.verify import canonical

logger = logging.getLogger("benchmark")

# Configuration
RESULTS_DIR = Path("benchmark_results")
DEFAULT_SIZES = [1000, 10000, 100000]
DEFAULT_PARTITIONS = [1, 4, 16]
SEED = 1234

# Benchmark configurations
BENCHMARKS = [
    {
        "name": "index_identity",
        "function": index_reduce.reduce_index_identity,
        "arg": None,
        "input": "index",
        "description": "Pass-through of index records",
    },
    {
        "name": "index_extract_integer",
        "function": index_reduce.reduce_index_extract_integer,
        "arg": index_reduce.ExtractIntegerArgs("field_bin", "extracted", "this", 1, 32),
        "input": "index",
        "description": "Decode a 32-bit integer after a 1-byte prefix",
    },
    {
        "name": "index_by_range",
        "function": index_reduce.reduce_index_by_range,
        "arg": None,  # filled in per size
        "input": "index",
        "description": "Keep the middle half of the integer term range",
    },
    {
        "name": "index_regex",
        "function": index_reduce.reduce_index_regex,
        "arg": index_reduce.RegexArgs("field_str", "this", re.compile("7$")),
        "input": "index",
        "description": "Keep string terms ending in 7",
    },
    {
        "name": "index_max",
        "function": index_reduce.reduce_index_max,
        "arg": index_reduce.MaxArgs("field_int", "this"),
        "input": "index",
        "description": "Record with the greatest integer term",
    },
    {
        "name": "sum",
        "function": reduce_functions.reduce_sum,
        "arg": None,
        "input": "numbers",
        "description": "Sum of integers",
    },
    {
        "name": "sort",
        "function": reduce_functions.reduce_sort,
        "arg": None,
        "input": "numbers",
        "description": "Sort integers",
    },
    {
        "name": "set_union",
        "function": reduce_functions.reduce_set_union,
        "arg": None,
        "input": "bkeys",
        "description": "Distinct bucket/key pairs, half of them duplicated",
    },
    {
        "name": "count_inputs",
        "function": reduce_functions.reduce_count_inputs,
        "arg": None,
        "input": "bkeys",
        "description": "Count bucket/key pairs",
    },
]


def generate_input(kind, size, seed=SEED):
    """Build a synthetic input list of the given kind."""
    rng = random.Random(seed)
    if kind == "index":
        values = rng.sample(range(size * 10), size)
        return [
            ((b"bucket", b"key%d" % n),
             [("field_bin", b"\x00" + value.to_bytes(4, "big") + b"\x00"),
              ("field_int", value),
              ("field_str", f"user{value}")])
            for n, value in enumerate(values)
        ]
    if kind == "numbers":
        return [rng.randrange(1_000_000) for _ in range(size)]
    if kind == "bkeys":
        keys = [(b"bucket", b"key%d" % rng.randrange(size // 2 or 1)) for _ in range(size)]
        return keys
    raise ValueError(f"Unknown input kind: {kind}")


def benchmark_arg(config, size):
    """Phase argument for a benchmark at a given input size."""
    if config["name"] == "index_by_range":
        return index_reduce.RangeArgs("field_int", "all", size * 10 // 4, size * 10 * 3 // 4)
    return config["arg"]


def run_partitioned(function, arg, entries, partitions):
    """
    Reduce entries in one pass, or split into partitions and re-reduce.

    Returns: (result, reduce_calls)
    """
    if partitions <= 1:
        return function(entries, arg), 1

    chunk = math.ceil(len(entries) / partitions)
    partials = []
    calls = 0
    for start in range(0, len(entries), chunk):
        partials.extend(function(entries[start:start + chunk], arg))
        calls += 1
    return function(partials, arg), calls + 1


def run_benchmark(config, size, partitions, process, run_number=1):
    """Run a single benchmark configuration."""
    entries = generate_input(config["input"], size)
    arg = benchmark_arg(config, size)
    function = config["function"]

    rss_before = process.memory_info().rss
    start_time = time.perf_counter()
    try:
        result, calls = run_partitioned(function, arg, entries, partitions)
    except Exception as e:
        logger.error(f"Benchmark {config['name']} failed: {e}")
        return None
    duration = time.perf_counter() - start_time
    rss_after = process.memory_info().rss

    consistent = True
    if partitions > 1 and config["name"] != "sort":
        # single-pass result as reference; sort compares exactly below
        consistent = canonical(result) == canonical(function(entries, arg))
    elif partitions > 1:
        consistent = result == function(entries, arg)

    return {
        "benchmark_name": config["name"],
        "description": config["description"],
        "run_number": run_number,
        "timestamp": datetime.now().isoformat(),
        "input_size": size,
        "partitions": partitions,
        "reduce_calls": calls,
        "output_size": len(result),
        "runtime_seconds": round(duration, 6),
        "records_per_second": round(size / duration, 1) if duration > 0 else 0,
        "rss_delta_bytes": rss_after - rss_before,
        "rss_bytes": rss_after,
        "consistent": consistent,
    }


def save_results(results, timestamp):
    """Save results to JSON and CSV files."""
    RESULTS_DIR.mkdir(exist_ok=True)

    json_file = RESULTS_DIR / f"benchmark_results_{timestamp}.json"
    with open(json_file, 'w') as f:
        json.dump(results, f, indent=2)
    print(f"\n✓ Results saved to: {json_file}")

    csv_file = RESULTS_DIR / f"benchmark_results_{timestamp}.csv"
    if results:
        fieldnames = list(results[0].keys())
        with open(csv_file, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(results)
        print(f"✓ Results saved to: {csv_file}")

    return json_file, csv_file


def print_summary(results):
    """Print a summary table of results."""
    print(f"\n{'='*78}")
    print("BENCHMARK SUMMARY")
    print(f"{'='*78}")
    print(f"{'Benchmark':<24} {'Size':>8} {'Parts':>6} {'Runtime':>11} {'Rec/s':>12} {'Same':>6}")
    print(f"{'-'*78}")

    for r in results:
        print(f"{r['benchmark_name']:<24} {r['input_size']:>8} {r['partitions']:>6} "
              f"{r['runtime_seconds']:>10.4f}s {r['records_per_second']:>12.0f} "
              f"{'✓' if r['consistent'] else '✗':>6}")

    print(f"{'='*78}")

    inconsistent = sum(1 for r in results if not r['consistent'])
    print(f"Total: {len(results)} runs, {inconsistent} with results differing from a single pass")


def main(argv=None):
    """Main benchmarking workflow."""
    parser = argparse.ArgumentParser(description="Benchmark reduce phase functions")
    parser.add_argument("--sizes", type=int, nargs="+", default=DEFAULT_SIZES,
                        help="Input sizes to benchmark")
    parser.add_argument("--partitions", type=int, nargs="+", default=DEFAULT_PARTITIONS,
                        help="Partition counts; 1 means a single pass")
    parser.add_argument("--runs", type=int, default=1, help="Runs per configuration")
    parser.add_argument("--only", nargs="+", help="Benchmark names to run")
    args = parser.parse_args(argv)

    configure_logging()

    print("="*78)
    print("Reduce Phase Benchmark Suite")
    print("="*78)

    configs = [c for c in BENCHMARKS if not args.only or c["name"] in args.only]
    process = psutil.Process()
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    all_results = []

    for config in configs:
        for size in args.sizes:
            for partitions in args.partitions:
                for run in range(1, args.runs + 1):
                    result = run_benchmark(config, size, partitions, process, run_number=run)
                    if result:
                        all_results.append(result)

    if all_results:
        json_file, _ = save_results(all_results, timestamp)
        print_summary(all_results)
        print(f"\nGenerate plots: python plot_results.py {json_file}")
    else:
        print("\n❌ No results collected")


if __name__ == "__main__":
    main()
