import argparse
import contextlib
import json
import math
import sys
import threading
from pathlib import Path
from typing import Iterator, List, Optional, TextIO

from rich.console import Console
from rich.text import Text

from . import __version__
from .coerce import CoercionError
from .config import StatsConfig
from .histogram import IntegerStats
from .logutil import get_logger, set_verbose
from .matrix import MatrixColumnIterator
from .metrics import histogram_metrics
from .rolling import RollingArray
from .tsv import read_matrix


def build_config(args: argparse.Namespace) -> StatsConfig:
    overrides = {}
    for field in ("capacity", "window"):
        value = getattr(args, field, None)
        if value is not None:
            overrides[field] = int(value)
    return StatsConfig(**overrides)


@contextlib.contextmanager
def open_input(path: str) -> Iterator[TextIO]:
    """Yield a text handle for ``path``; ``-`` means standard input (left open)."""
    if path == "-":
        yield sys.stdin
        return
    with open(path, "r", encoding="utf-8") as handle:
        yield handle


def iter_column(handle: TextIO, column: int, header: bool) -> MatrixColumnIterator:
    table = read_matrix(handle, header=header)
    if not 0 <= column < table.columns:
        raise ValueError(f"column {column} out of range: input has {table.columns} column(s)")
    get_logger().debug("read %d rows x %d columns", table.rows, table.columns)
    return MatrixColumnIterator(table.data, column)


def load_stats(args: argparse.Namespace, cfg: StatsConfig) -> IntegerStats:
    with open_input(args.file) as handle:
        if getattr(args, "column", None) is not None:
            return IntegerStats(cfg.capacity, iter_column(handle, args.column, args.header))
        return IntegerStats.from_lines(cfg.capacity, handle)


def _maybe_console(args: argparse.Namespace) -> Optional[Console]:
    if getattr(args, "no_color", False):
        return None
    # force_terminal ensures ANSI codes even when output is being captured (for tests)
    return Console(color_system="truecolor", stderr=False, force_terminal=True)


def _fmt(value: float) -> str:
    return "nan" if math.isnan(value) else f"{value:.6g}"


def cmd_percentile(args: argparse.Namespace) -> int:
    cfg = build_config(args)
    stats = load_stats(args, cfg)
    wanted: List[int] = args.percentile or list(cfg.percentiles)
    results = {p: stats.percentile(p) for p in wanted}
    if args.json:
        with open(args.json, "w", encoding="utf-8") as fh:
            json.dump({"count": stats.total, "percentiles": {str(p): v for p, v in results.items()}}, fh, indent=2)
    console = _maybe_console(args)
    for p, value in results.items():
        line = f"p{p}\t{value}"
        if console is not None:
            # -1 means nothing was observed
            console.print(Text(line, style="red" if value < 0 else "green"))
        else:
            print(line)
    return 0


def cmd_median(args: argparse.Namespace) -> int:
    stats = load_stats(args, build_config(args))
    print(stats.median())
    return 0


def cmd_summary(args: argparse.Namespace) -> int:
    cfg = build_config(args)
    stats = load_stats(args, cfg)
    if args.json:
        print(json.dumps(histogram_metrics(stats, percentiles=cfg.percentiles), indent=2))
    else:
        print(str(stats), end="")
    return 0


def cmd_above(args: argparse.Namespace) -> int:
    stats = load_stats(args, build_config(args))
    if stats.total == 0:
        get_logger().warning("no values observed; fractions are undefined")
    for threshold in args.threshold:
        fraction = stats.fraction_above(threshold)
        print(f">={threshold}\t{_fmt(fraction)}\t{_fmt(100.0 * fraction)}%")
    return 0


def cmd_dump(args: argparse.Namespace) -> int:
    stats = load_stats(args, build_config(args))
    if args.out:
        with open(args.out, "w", encoding="utf-8") as fh:
            stats.save(fh)
        print(f"Wrote {stats.capacity} buckets to {args.out}", file=sys.stderr)
    else:
        stats.save(sys.stdout)
    return 0


def cmd_rolling(args: argparse.Namespace) -> int:
    cfg = build_config(args)
    window = RollingArray(cfg.window)
    with open_input(args.file) as handle:
        if args.column is not None:
            values = iter_column(handle, args.column, args.header)
        else:
            values = (float(line) for line in handle if line.strip())
        for value in values:
            window.add(value)
            print(f"{_fmt(value)}\t{_fmt(window.mean())}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:  # pragma: no cover - integration feature
    try:
        import uvicorn
        from .service import build_app
    except Exception:  # noqa: BLE001
        print("'serve' requires uvicorn and fastapi. Install with `pip install intstats[server]`.", file=sys.stderr)
        return 2

    log = get_logger()
    cfg = build_config(args)
    stats = IntegerStats(cfg.capacity)
    if args.state_in:
        try:
            stats = IntegerStats.load_state(args.state_in)
        except FileNotFoundError:
            log.warning("state file '%s' not found; starting fresh.", args.state_in)
    app = build_app(stats, RollingArray(cfg.window), cfg)

    def _save_snapshot() -> None:
        saved = stats.save_state(args.state_out)
        log.info("wrote state snapshot to %s", saved)

    stop = threading.Event()

    def _snapshot_loop() -> None:
        while not stop.wait(max(5, args.interval)):
            try:
                _save_snapshot()
            except OSError as snap_exc:
                log.error("snapshot failed: %s", snap_exc)

    if args.state_out:
        threading.Thread(target=_snapshot_loop, daemon=True).start()

    try:
        uvicorn.run(app, host=args.host, port=args.port, log_level="info")
    finally:
        stop.set()
        if args.state_out:
            _save_snapshot()
    return 0


def cmd_bench(args: argparse.Namespace) -> int:
    from .bench import iter_file, run, synthetic_values

    cfg = build_config(args)
    if args.file:
        p = Path(args.file)
        if not p.exists():
            get_logger().error("file not found: %s", p)
            return 2
        content = list(iter_file(p))
        while content and len(content) < args.warm + args.measure:
            content.extend(content[: args.warm + args.measure - len(content)])
    else:
        content = list(synthetic_values(max(args.values, args.warm + args.measure)))
    run(content, args.warm, args.measure, capacity=cfg.capacity, window=cfg.window)
    return 0


def _add_input_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", help="Input with one integer per line ('-' for stdin)")
    p.add_argument("--capacity", type=int, help="Histogram size; larger values share the top bucket (default 1000)")
    p.add_argument("--column", type=int, help="Read tab separated input and use this zero-based column")
    p.add_argument("--header", action="store_true", help="First TSV line holds column names (with --column)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="intstats", description="Streaming integer percentiles and rolling windows")
    parser.add_argument("--version", action="version", version=f"intstats {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd")

    pct_parser = sub.add_parser("percentile", help="Report percentiles of a stream of integers")
    _add_input_args(pct_parser)
    pct_parser.add_argument("-p", "--percentile", type=int, action="append", choices=range(1, 101), metavar="P",
                            help="Percentile in 1-100 (repeatable; default 50 90 95 99)")
    pct_parser.add_argument("--json", help="Also write results as JSON to this path")
    pct_parser.add_argument("--no-color", action="store_true", help="Disable colorized output")
    pct_parser.set_defaults(func=cmd_percentile)

    median_parser = sub.add_parser("median", help="Print the median")
    _add_input_args(median_parser)
    median_parser.set_defaults(func=cmd_median)

    summary_parser = sub.add_parser("summary", help="Summary statistics plus median")
    _add_input_args(summary_parser)
    summary_parser.add_argument("--json", action="store_true", help="Print the metrics snapshot as JSON")
    summary_parser.set_defaults(func=cmd_summary)

    above_parser = sub.add_parser("above", help="Fraction of values at or above thresholds")
    _add_input_args(above_parser)
    above_parser.add_argument("--threshold", type=int, nargs="+", required=True)
    above_parser.set_defaults(func=cmd_above)

    dump_parser = sub.add_parser("dump", help="Write the histogram as index/count/cumulative-fraction TSV")
    _add_input_args(dump_parser)
    dump_parser.add_argument("--out", help="Write to this path instead of stdout")
    dump_parser.set_defaults(func=cmd_dump)

    rolling_parser = sub.add_parser("rolling", help="Print a moving average over a fixed window")
    _add_input_args(rolling_parser)
    rolling_parser.add_argument("--window", type=int, help="Window size (default 10)")
    rolling_parser.set_defaults(func=cmd_rolling)

    bench_parser = sub.add_parser("bench", help="Run a quick throughput benchmark (synthetic or file)")
    bench_parser.add_argument("--file", help="Optional file of integers to benchmark against")
    bench_parser.add_argument("--values", type=int, default=10000, help="Synthetic values if no file provided")
    bench_parser.add_argument("--warm", type=int, default=1000, help="Warm-up values (not timed)")
    bench_parser.add_argument("--measure", type=int, default=5000, help="Values to measure timing over")
    bench_parser.add_argument("--capacity", type=int)
    bench_parser.add_argument("--window", type=int)
    bench_parser.set_defaults(func=cmd_bench)

    serve_parser = sub.add_parser("serve", help="Run HTTP service (requires intstats[server])")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8080)
    serve_parser.add_argument("--capacity", type=int)
    serve_parser.add_argument("--window", type=int)
    serve_parser.add_argument("--state-in", help="Load estimator snapshot at startup")
    serve_parser.add_argument("--state-out", help="Persist snapshot periodically and on shutdown")
    serve_parser.add_argument("--interval", type=int, default=60, help="Snapshot interval seconds")
    serve_parser.set_defaults(func=cmd_serve)

    version_parser = sub.add_parser("version", help="Show version and exit")
    version_parser.set_defaults(func=lambda _: (print(f"intstats {__version__}"), 0)[1])

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    set_verbose(args.verbose)
    if not getattr(args, "cmd", None):  # No subcommand provided
        parser.print_help()
        return 0
    try:
        return args.func(args)
    except (CoercionError, ValueError, OSError) as exc:
        get_logger().error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
