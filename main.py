# main.py
import argparse
import json
import logging
import sys

from cache import InvalidGeometry, compute_geometry
from simulator import SimulationDriver
from visualize import plot_hit_miss_rate, plot_hit_rate_over_time
from workload import TraceGenerator, read_trace, write_trace

logger = logging.getLogger(__name__)

# key-value config keys -> (section, key)
KV_KEYS = {
    "CACHE_SIZE_KB": ("cache", "size_kb"),
    "BLOCK_SIZE_BYTES": ("cache", "line_size_bytes"),
    "ASSOCIATIVITY": ("cache", "associativity"),
}


def parse_kv_config(text):
    """Parse `KEY: value` lines, e.g. `CACHE_SIZE_KB: 32`."""
    cfg = {"cache": {}, "trace": {}, "output": {}}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key in KV_KEYS:
            section, name = KV_KEYS[key]
            cfg[section][name] = value.strip()
    return cfg


def load_config(path="config.json"):
    with open(path, "r") as f:
        if path.endswith(".json"):
            cfg = json.load(f)
        else:
            cfg = parse_kv_config(f.read())
    for section in ("cache", "trace", "output"):
        cfg.setdefault(section, {})
    return cfg


def _as_int(section_cfg, key, default):
    value = section_cfg.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"config value {key}={value!r} is not an integer")


def geometry_from_config(cfg):
    cache_cfg = cfg["cache"]
    size_kb = _as_int(cache_cfg, "size_kb", 32)
    line_size = _as_int(cache_cfg, "line_size_bytes", 64)
    associativity = _as_int(cache_cfg, "associativity", 4)
    return compute_geometry(size_kb * 1024, line_size, associativity)


def trace_settings(cfg, args):
    """Return (num_accesses, seed) for trace generation; command line wins over config."""
    trace_cfg = cfg["trace"]
    num_accesses = args.num_accesses
    if num_accesses is None:
        num_accesses = _as_int(trace_cfg, "num_accesses", 5000)
    if num_accesses < 0:
        raise ValueError(f"num_accesses must be non-negative, got {num_accesses}")
    seed = args.seed
    if seed is None and trace_cfg.get("random_seed") is not None:
        seed = _as_int(trace_cfg, "random_seed", None)
    if seed is not None and seed < 0:
        raise ValueError(f"random_seed must be non-negative, got {seed}")
    return num_accesses, seed


def print_geometry(g):
    print("--- Cache Geometry ---")
    print(f"Cache Size: {g.cache_size_bytes // 1024} KB")
    print(f"Block Size: {g.block_size_bytes} Bytes")
    print(f"Associativity: {g.associativity}")
    print(f"Num Sets: {g.num_sets}")
    print(f"Offset Bits: {g.offset_bits}")
    print(f"Index Bits: {g.index_bits}")
    print(f"Tag Bits: {g.tag_bits}")
    print("----------------------")


def print_results(summary):
    print("--- Simulation Results ---")
    print(f"Total Accesses: {summary['total_accesses']}")
    print(f"Hits: {summary['hits']}")
    print(f"Misses: {summary['misses']}")
    print(f"Hit Rate: {summary['hit_rate'] * 100.0:.4f}%")
    print("--------------------------")


def build_parser():
    parser = argparse.ArgumentParser(description="Set-associative LRU cache simulator")
    parser.add_argument("--config", default="config.json", help="config file (.json or KEY: value format)")
    parser.add_argument("--trace", help="trace file path (overrides config)")
    parser.add_argument("--no-generate", action="store_true", help="use the existing trace instead of generating one")
    parser.add_argument("--num-accesses", type=int, help="number of accesses to generate")
    parser.add_argument("--seed", type=int, help="random seed for trace generation")
    parser.add_argument("--no-plots", action="store_true", help="skip writing plots")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every cache access")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s: %(message)s')

    try:
        cfg = load_config(args.config)
        geometry = geometry_from_config(cfg)
        num_accesses, seed = trace_settings(cfg, args)
    except InvalidGeometry as e:
        logger.error("Invalid cache geometry: %s", e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("Could not load config %s: %s", args.config, e)
        return 1

    print_geometry(geometry)

    trace_cfg = cfg["trace"]
    out_cfg = cfg["output"]
    trace_path = args.trace or trace_cfg.get("path", "trace.txt")
    generate = trace_cfg.get("generate", True) and not args.no_generate

    try:
        if generate:
            records = TraceGenerator(seed=seed).generate(num_accesses)
            write_trace(trace_path, records)
            print(f"--- New '{trace_path}' generated with {num_accesses} accesses ---")

        driver = SimulationDriver(geometry)
        summary = driver.run(read_trace(trace_path))
        print_results(summary)
        results_path = driver.save_results(summary, out_cfg)
        print("Results saved to:", results_path)

        if not args.no_plots:
            plot_hit_rate_over_time(driver.outcomes, out_cfg.get("hitrate_plot", "results/hit_rate_over_time.png"))
            plot_hit_miss_rate(summary["hit_rate"], out_cfg.get("hitmiss_plot", "results/hit_miss_rate.png"))
            print("Plots saved in", out_cfg.get("results_dir", "results") + "/")
    except OSError as e:
        logger.error("I/O error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
