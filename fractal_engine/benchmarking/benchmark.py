"""
Benchmark the threaded Mandelbrot engine across worker counts and resolutions.

Usage examples:
  python -m fractal_engine.benchmarking.benchmark --res 800x600,1280x720 \
      --workers 1,2,4,8 --max-iter 500 --runs 3 --csv benchmark_results.csv

  fractal-benchmark --workers 1,8 --variant buddhabrot --samples 200000

  fractal-benchmark --native-lib ./libmandelbrot.so --native-symbol render
"""

import os
import csv
import time
import logging
import argparse
import platform
from typing import List, Optional, Tuple

from fractal_engine.backend.be_base import Backend
from fractal_engine.backend.be_cpu import CpuBackend
from fractal_engine.backend.be_native import NativeBackend
from fractal_engine.fractals.base import RenderParameters
from fractal_engine.rendering.executor import default_worker_count
from fractal_engine.utils.enums import MandelbrotVariant

logger = logging.getLogger(__name__)

# --- Helpers -----------------------------------------------------------------

def parse_resolution_list(res_str: str) -> List[Tuple[int, int]]:
    """
    Parse resolutions like "800x600,1280x720".
    """
    if not res_str:
        return [(800, 600), (1280, 720), (1920, 1080)]
    out: List[Tuple[int, int]] = []
    for token in res_str.split(','):
        token = token.strip().lower()
        if not token:
            continue
        w, h = token.split('x')
        out.append((int(w), int(h)))
    return out

def parse_worker_list(token: str) -> List[int]:
    """
    Parse worker counts like "1,2,4"; "max" stands for every available core.
    """
    out = []
    for t in token.split(','):
        t = t.strip().lower()
        if not t:
            continue
        n = default_worker_count() if t == "max" else int(t)
        if n < 1:
            raise ValueError(f"worker count must be >= 1; got {n}")
        out.append(n)
    return out

def cpu_summary() -> str:
    cpu_info = platform.processor() or platform.machine()
    return f"{cpu_info or 'Unknown CPU'} ({os.cpu_count()} logical cores)"

# --- Benchmark core ----------------------------------------------------------

def make_params(width: int, height: int, max_iter: int,
                variant: MandelbrotVariant, samples: Optional[int]) -> RenderParameters:
    """
    The canonical full-set viewport at the given size.
    """
    return RenderParameters(-2.0, 1.0, -1.5, 1.5, width, height, max_iter,
                            variant=variant, sample_size=samples, seed=0)

def benchmark_combo(backend: Backend,
                    params: RenderParameters,
                    runs: int,
                    warmup: int = 1) -> Tuple[float, float]:
    """
    Runs warmups (not timed), then 'runs' timed renders.
    Returns (avg_time_seconds, avg_engine_ms).
    """
    backend.warmup()
    for _ in range(max(0, warmup)):
        backend.render(params)

    times = []
    engine_ms = []
    for _ in range(runs):
        t0 = time.perf_counter()
        stats = backend.render(params)
        t1 = time.perf_counter()
        times.append(t1 - t0)
        engine_ms.append(stats.rendering_time_ms)

    return sum(times) / len(times), sum(engine_ms) / len(engine_ms)

# --- CSV writer --------------------------------------------------------------

def write_csv_row(writer,
                  resolution: Tuple[int, int],
                  results: List[Tuple[str, Optional[Tuple[float, float]]]]):
    """
    results: list of (backend_label, (avg, engine_ms)); the tuple is None if the run failed.
    """
    base = [f"{resolution[0]}x{resolution[1]}"]
    for _, result in results:
        if result is None:
            base.extend(["n/a", "n/a"])
        else:
            avg, engine_ms = result
            base.extend([f"{avg:.4f}", f"{engine_ms:.1f}"])
    writer.writerow(base)

# --- CLI ---------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Benchmark the threaded Mandelbrot engine.")
    p.add_argument("--res", type=str, default="800x600,1280x720,1920x1080",
                   help="Comma separated WxH list")
    p.add_argument("--workers", type=str, default="1,max",
                   help="Comma separated worker counts ('max' = all cores)")
    p.add_argument("--max-iter", type=int, default=500)
    p.add_argument("--variant", type=str, default="regular", choices=["regular", "buddhabrot"])
    p.add_argument("--samples", type=int, default=None,
                   help="Sample size for the buddhabrot variant")
    p.add_argument("--runs", type=int, default=3)
    p.add_argument("--warmup", type=int, default=1)
    p.add_argument("--native-lib", type=str, default=None,
                   help="Shared library exposing a native renderer to compare against")
    p.add_argument("--native-symbol", type=str, default="render")
    p.add_argument("--csv", type=str, default="benchmark_results.csv")
    p.add_argument("--log-level", type=str, default="WARNING")
    return p

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    resolutions = parse_resolution_list(args.res)
    worker_counts = parse_worker_list(args.workers)
    variant = MandelbrotVariant.from_tag(args.variant)

    cpu_info = cpu_summary()
    print("=== Hardware Summary ===")
    print("CPU:", cpu_info)
    print()

    backends: List[Tuple[str, Optional[Backend]]] = []
    for n in worker_counts:
        backends.append((f"CPU x{n}", CpuBackend(worker_count=n)))
    if args.native_lib:
        try:
            backends.append(("Native", NativeBackend.from_library(args.native_lib, args.native_symbol)))
        except (OSError, AttributeError) as e:
            print(f"[ERR] Native backend init failed: {e}")
            backends.append(("Native", None))

    try:
        with open(args.csv, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["Hardware Summary"])
            writer.writerow(["CPU", cpu_info])
            writer.writerow([])

            header = ["Resolution"]
            for name, _ in backends:
                header.extend([f"{name} Time (s)", f"{name} Engine (ms)"])
            writer.writerow(header)

            print(f"Settings: variant={variant.value}, max_iter={args.max_iter}, runs={args.runs}")
            print()

            for (w, h) in resolutions:
                print(f"=== {w}x{h} ===")
                params = make_params(w, h, args.max_iter, variant, args.samples)
                row_results: List[Tuple[str, Optional[Tuple[float, float]]]] = []
                for name, backend in backends:
                    if backend is None:
                        row_results.append((name, None))
                        continue
                    try:
                        avg, engine_ms = benchmark_combo(backend, params, args.runs, args.warmup)
                        print(f"{name:>12}  avg={avg:.4f}s  engine={engine_ms:.1f}ms")
                        row_results.append((name, (avg, engine_ms)))
                    except Exception as e:
                        logger.exception("%s failed at %dx%d", name, w, h)
                        print(f"{name:>12}  FAIL: {e}")
                        row_results.append((name, None))
                write_csv_row(writer, (w, h), row_results)
                print()
    finally:
        for _, backend in backends:
            if backend is not None:
                backend.close()

    print(f"Benchmark results saved to {args.csv}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
