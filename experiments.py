"""
Huffman code table experiments

Builds Huffman trees from synthetic data, saves each code as a text table,
restores it, and checks that the restored tree decodes the compressed bits
back to the original bytes. Repeated runs produce timing and size data.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 256 --exp2_max_mb 4
  python experiments.py --outdir results --exp1_generators uniform256,zipf128,single_symbol

Pipelines:
  huffman        decode with the tree built from frequencies
  huffman+table  write the code table, read it back, decode with the restored tree
"""

from __future__ import annotations

import argparse
import csv
import io
import math
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt

import huffman as huff
from bitio import BitInputStream, BitOutputStream


PIPELINES = ("huffman", "huffman+table")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def freq_table(data: bytes) -> Dict[int, int]:
    ft: Dict[int, int] = {}
    for b in data:
        ft[b] = ft.get(b, 0) + 1
    return ft

def entropy_bits(ft: Dict[int, int]) -> float:
    """Shannon entropy in bits per symbol, the lower bound for the average code length."""
    total = sum(ft.values())
    if total == 0:
        return 0.0
    return -sum((c / total) * math.log2(c / total) for c in ft.values() if c > 0)


def encode_bits(data: bytes, code_map: Dict[int, str]) -> Tuple[bytes, int]:
    """
    Packs the Huffman code of every input byte
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = BitOutputStream()
    if len(code_map) == 1:
        # Lone symbol has the empty code; the decoder reads one symbol per bit
        for _ in data:
            out.write_bit(0)
        return out.finish()

    for b in data:
        out.write_code(code_map[b])
    return out.finish()


def save_table_text(root) -> str:
    buf = io.StringIO()
    huff.write_code_table(root, buf)
    return buf.getvalue()


def restore_table_text(text: str):
    return huff.load_code_table(io.StringIO(text))


# Synthetic dataset generators

def _sample_cdf(rng: random.Random, weights: Sequence[float], size: int) -> List[int]:
    """Draw size indices with probability proportional to weights (binary search on the CDF)."""
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)

    picks = []
    for _ in range(size):
        r = rng.random()
        lo, hi = 0, len(cdf) - 1
        while lo < hi:
            mid = (lo + hi) // 2
            if r <= cdf[mid]:
                hi = mid
            else:
                lo = mid + 1
        picks.append(lo)
    return picks

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    others = [i for i in range(256) if i != dominant]
    return bytes(dominant if rng.random() < dom_frac else rng.choice(others) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return bytes(_sample_cdf(rng, weights, size))

ENGLISH_CHARS = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"

def _english_weight(ch: str) -> float:
    if ch == ' ':
        return 13.0
    if ch == '\n':
        return 1.5
    if ch.lower() in "etaoinshrdlu":
        return 6.0
    if ch.lower() in "cmfwgypbvk":
        return 2.5
    return 1.2

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [_english_weight(ch) for ch in ENGLISH_CHARS]
    return bytes(ord(ENGLISH_CHARS[i]) for i in _sample_cdf(rng, weights, size))

def gen_single_symbol(size: int, symbol: int = ord('A')) -> bytes:
    return bytes([symbol]) * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform16": lambda size, seed: gen_uniform(size, alphabet=16, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf32": lambda size, seed: gen_zipf_like(size, alphabet=32, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single_symbol": lambda size, seed: gen_single_symbol(size),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    """
    Unknown dataset names fall back to uniform256, tagged in the returned name
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        return f"{name}_fallback_uniform256", gen_uniform(size_bytes, alphabet=256, seed=seed)
    return name, fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "huffman" or "huffman+table"
    unique_symbols: int

    build_huffman_ms: float
    table_ms: float  # save + restore of the code table
    encode_ms: float
    decode_ms: float
    total_ms: float

    compressed_bytes: int
    table_bytes: int
    pad_bits: int
    compression_ratio: float  # (compressed + table) / original

    avg_code_length: float
    entropy_bits: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes, pipeline: str) -> MetricRow:
    if pipeline not in PIPELINES:
        raise ValueError(f"pipeline must be one of {', '.join(PIPELINES)}")

    ft = freq_table(data)

    t0 = now_ns()
    root = huff.build_huffman_tree(ft)
    code_map = huff.generate_huffman_codes(root)
    t1 = now_ns()
    build_huffman_ms = ns_to_ms(t1 - t0)

    table_ms = 0.0
    if pipeline == "huffman+table":
        t2 = now_ns()
        table_text = save_table_text(root)
        decode_root = restore_table_text(table_text)
        t3 = now_ns()
        table_ms = ns_to_ms(t3 - t2)
    else:
        table_text = save_table_text(root)
        decode_root = root

    t4 = now_ns()
    packed, pad_bits = encode_bits(data, code_map)
    t5 = now_ns()
    encode_ms = ns_to_ms(t5 - t4)

    t6 = now_ns()
    decoded = huff.huffman_decode(BitInputStream(packed, pad_bits), decode_root)
    t7 = now_ns()
    decode_ms = ns_to_ms(t7 - t6)

    correctness_ok = 1 if decoded == data else 0
    table_bytes = len(table_text.encode("ascii"))
    comp_bytes = len(packed)
    ratio = (comp_bytes + table_bytes) / max(1, len(data))
    avg_len = huff.weighted_code_length(root, ft) / max(1, len(data))
    total_ms = build_huffman_ms + table_ms + encode_ms + decode_ms

    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(ft),
        build_huffman_ms=build_huffman_ms,
        table_ms=table_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=total_ms,
        compressed_bytes=comp_bytes,
        table_bytes=table_bytes,
        pad_bits=pad_bits,
        compression_ratio=ratio,
        avg_code_length=avg_len,
        entropy_bits=entropy_bits(ft),
        correctness_ok=correctness_ok,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


SUMMARY_METRICS = (
    "compression_ratio",
    "encode_ms",
    "decode_ms",
    "build_huffman_ms",
    "table_ms",
    "total_ms",
    "avg_code_length",
)

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "pipeline", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b, pipeline = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
            }
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            row["correctness_ok_rate"] = sum(x.correctness_ok for x in items) / len(items)
            w.writerow(row)


# Plotting

def _save_figure(path: Path) -> None:
    plt.tight_layout()
    plt.savefig(path, dpi=200)
    plt.close()

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))

    def mean_for(dataset: str, pipeline: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    x = list(range(len(datasets)))

    plt.figure()
    plt.plot(x, [mean_for(d, "huffman", "avg_code_length") for d in datasets], marker="o", label="huffman")
    plt.plot(x, [mean_for(d, "huffman", "entropy_bits") for d in datasets], marker="x", linestyle="--", label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Experiment 1: Average Code Length vs Entropy")
    plt.legend()
    _save_figure(outdir / "exp1_code_length.png")

    plt.figure()
    for p in PIPELINES:
        plt.plot(x, [mean_for(d, p, "compression_ratio") for d in datasets], marker="o", label=p)
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("(Compressed + Table Bytes) / Original Bytes")
    plt.title("Experiment 1: Compression Ratio by Distribution")
    plt.legend()
    _save_figure(outdir / "exp1_compression_ratio.png")

    plt.figure()
    for p in PIPELINES:
        plt.plot(x, [mean_for(d, p, "total_ms") for d in datasets], marker="o", label=p)
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Total Time (ms) (build + table + encode + decode)")
    plt.title("Experiment 1: Total Runtime by Distribution")
    plt.legend()
    _save_figure(outdir / "exp1_total_time.png")


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.file_size_bytes == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        for field, label in (("decode_ms", "Decode Time (ms)"), ("compression_ratio", "(Compressed + Table Bytes) / Original Bytes")):
            plt.figure()
            for p in PIPELINES:
                plt.plot(sizes, [mean_size(s, p, field) for s in sizes], marker="o", label=p)
            plt.xlabel("File Size (bytes)")
            plt.ylabel(label)
            plt.title(f"Experiment 2: {label.split(' (')[0]} vs Size ({dist})")
            plt.legend()
            _save_figure(outdir / f"exp2_{field}_{dist}.png")


def plot_experiment_3(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp3_table_overhead" and r.pipeline == "huffman+table"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, field: str) -> float:
        return statistics.mean(getattr(r, field) for r in exp_rows if r.dataset_name == dataset)

    plt.figure()
    plt.bar([i - 0.2 for i in x], [mean_for(d, "table_bytes") for d in datasets], width=0.4, label="table bytes")
    plt.bar([i + 0.2 for i in x], [mean_for(d, "compressed_bytes") for d in datasets], width=0.4, label="compressed bytes")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bytes")
    plt.title("Experiment 3: Code Table Size vs Payload Size")
    plt.legend()
    _save_figure(outdir / "exp3_table_overhead.png")


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def _run_configs(rows: List[MetricRow], exp_name: str, gen_name: str, size_b: int, runs: int, seed: int) -> None:
    for run_id in range(1, runs + 1):
        dataset_name, data = generate_dataset(gen_name, size_b, seed + run_id)
        for pipeline in PIPELINES:
            row = run_one(data, pipeline)
            row.exp_name = exp_name
            row.dataset_name = dataset_name
            row.run_id = run_id
            rows.append(row)

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Huffman code table experiments")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_exp3", action="store_true", help="Disable experiment 3 (table overhead)")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=256, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str, default="uniform256,zipf128,repetitive90,english_like,single_symbol",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_mb", type=int, default=2, help="Experiment 2 max size in MB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")

    # Experiment 3 controls
    ap.add_argument("--exp3_size_kb", type=int, default=16, help="Experiment 3 file size in KB")

    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            _run_configs(rows, "exp1_distribution", gen_name, fixed_size, args.runs, args.seed)

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        min_bytes = max(1, args.exp2_min_kb) * 1024
        max_bytes = max(1, args.exp2_max_mb) * 1024 * 1024

        sizes: List[int] = []
        s = min_bytes
        while s <= max_bytes:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                _run_configs(rows, "exp2_size_scaling", gen_name, size_b, args.runs, args.seed + 10_000 + size_b)

    # Experiment 3: table size against payload size as the alphabet grows
    if not args.no_exp3:
        size_b = max(1, args.exp3_size_kb) * 1024
        for gen_name in ("single_symbol", "uniform16", "zipf32", "english_like", "zipf128", "uniform256"):
            _run_configs(rows, "exp3_table_overhead", gen_name, size_b, args.runs, args.seed + 200_000)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)
        plot_experiment_3(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
