from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .compare import CONTIG_STYLES, explain_placements, harmonise_contigs, run_comparison
from .models import BOUNDARY_RESOLUTION
from .plotting import plot_compatibility_matrix, plot_remainder_sizes
from .report import render_report
from .toy_data import make_toy_data
from .treefile import TreeFileError, load_tree_set
from .validation import check_tree


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _resolution(s: str) -> int:
    try:
        v = int(float(s))
    except (ValueError, OverflowError):
        raise argparse.ArgumentTypeError(f"Resolution must be an integer number of bp: {s}") from None
    if v < 0:
        raise argparse.ArgumentTypeError(f"Resolution must be >= 0, got {v}")
    return v


def _log_path(outdir: Path, name: str) -> Path:
    return outdir / "logs" / name


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    if isinstance(err, TreeFileError):
        msg = str(err)
    else:
        msg = f"{err.__class__.__name__}: {err}"

    sys.stderr.write(msg + "\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="subclonecompat",
        description=(
            "SubcloneCompat: check whether subclone trees from related samples or runs "
            "describe a consistent tumor evolution."
        ),
    )
    p.add_argument("--version", action="version", version=f"subclonecompat {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser(
        "quickstart",
        help="Print ready-to-run recipes for common scenarios.",
    )

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate two tiny tree sets (and a VCF) for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # compare
    # -----------------
    c = sub.add_parser(
        "compare",
        help="Compare every tree of set 1 with every tree of set 2 and report compatible pairs.",
    )
    c.add_argument("--set1", required=True, type=_path_exists, help="Reference tree set (.json/.json.gz).")
    c.add_argument(
        "--set2",
        required=True,
        type=_path_exists,
        help="Tree set expected to refine set 1 (.json/.json.gz).",
    )
    c.add_argument("--outdir", required=True, help="Output directory.")
    c.add_argument(
        "--resolution",
        type=_resolution,
        default=BOUNDARY_RESOLUTION,
        help=f"Max breakpoint distance (bp) for two events to count as the same (default {BOUNDARY_RESOLUTION}).",
    )
    c.add_argument(
        "--mutual",
        action="store_true",
        help="Require each tree of a pair to be placeable on the other (both directions).",
    )
    c.add_argument(
        "--contig-style",
        choices=list(CONTIG_STYLES),
        default="auto",
        help="Harmonise contig names (chr1 vs 1) before comparing; 'keep' leaves them as-is.",
    )
    c.add_argument("--no-plots", action="store_true", help="Skip plots in the report.")
    c.add_argument("--resume", action="store_true", help="Skip if summary.json already exists.")
    c.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned outputs.")
    c.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv).")

    # -----------------
    # place
    # -----------------
    pl = sub.add_parser(
        "place",
        help="Print where each subclone of one set-2 tree lands on one set-1 tree (TSV).",
    )
    pl.add_argument("--set1", required=True, type=_path_exists, help="Reference tree set.")
    pl.add_argument("--set2", required=True, type=_path_exists, help="Tree set to place.")
    pl.add_argument("--tree1", type=int, default=0, help="Index of the tree in set 1 (default 0).")
    pl.add_argument("--tree2", type=int, default=0, help="Index of the tree in set 2 (default 0).")
    pl.add_argument("--resolution", type=_resolution, default=BOUNDARY_RESOLUTION)
    pl.add_argument(
        "--contig-style",
        choices=list(CONTIG_STYLES),
        default="auto",
        help="Harmonise contig names (chr1 vs 1) before placing; 'keep' leaves them as-is.",
    )
    pl.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv).")

    # -----------------
    # validate
    # -----------------
    v = sub.add_parser(
        "validate",
        help="Check tree set files for structural problems.",
    )
    v.add_argument("treefiles", nargs="+", type=_path_exists, help="Tree set files to check.")
    v.add_argument("--resolution", type=_resolution, default=BOUNDARY_RESOLUTION)
    v.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv).")

    return p


# -----------------
# Command implementations
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "SubcloneCompat quickstart (copy/paste):",
        "",
        "1) Try it on toy data:",
        "   subclonecompat make-toy-data --outdir toy/",
        "   subclonecompat compare --set1 toy/set1.json --set2 toy/set2.json --outdir results/",
        "   Outputs: results/report.html, results/pairs.tsv, results/summary.json",
        "",
        "2) Primary vs relapse, both directions, Ensembl contig names:",
        "   subclonecompat compare \\",
        "     --set1 primary_trees.json.gz \\",
        "     --set2 relapse_trees.json.gz \\",
        "     --mutual --contig-style ensembl \\",
        "     --outdir primary_vs_relapse/",
        "",
        "3) Inspect one pair node by node:",
        "   subclonecompat place --set1 toy/set1.json --set2 toy/set2.json --tree1 0 --tree2 0",
        "",
        "Tip: use --dry-run to validate inputs, and 'subclonecompat validate' to check tree files.",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def cmd_compare(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    log_path = _log_path(outdir, "compare.log")
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("subclonecompat")
    logger.info("subclonecompat %s", __version__)

    try:
        if args.dry_run:
            set1 = load_tree_set(args.set1)
            set2 = load_tree_set(args.set2)
            print("Dry-run: inputs look OK.")
            print(f"Set 1: {len(set1)} trees")
            print(f"Set 2: {len(set2)} trees")
            print(f"Pairs to test: {len(set1) * len(set2)}")
            print("Planned outputs:")
            print(f"  report.html -> {outdir / 'report.html'}")
            print(f"  pairs.tsv -> {outdir / 'pairs.tsv'}")
            print(f"  summary.json -> {outdir / 'summary.json'}")
            return 0

        if args.resume and (outdir / "summary.json").exists():
            logger.info("Resume enabled: summary.json already exists in %s", outdir)
            print(str(outdir / "report.html"))
            return 0

        summary = run_comparison(
            set1_path=args.set1,
            set2_path=args.set2,
            outdir=outdir,
            resolution=int(args.resolution),
            mutual=bool(args.mutual),
            contig_style=str(args.contig_style),
            progress=True,
        )

        plots_rel = None
        if not args.no_plots:
            plots_dir = outdir / "plots"
            plots_dir.mkdir(parents=True, exist_ok=True)
            matrix_png = plots_dir / "compatibility_matrix.png"
            remainder_png = plots_dir / "remainder_sizes.png"

            names = summary["tree_names"]
            plot_compatibility_matrix(
                matrix=summary["matrix"],
                names1=names["set1"],
                names2=names["set2"],
                out_png=matrix_png,
            )
            plot_remainder_sizes(
                remainder_hist={int(k): v for k, v in summary["remainder_size_hist"].items()},
                out_png=remainder_png,
            )
            plots_rel = {
                "compatibility_matrix": str(Path("plots") / matrix_png.name),
                "remainder_sizes": str(Path("plots") / remainder_png.name),
            }

        report_path = render_report(
            outdir=outdir,
            version=__version__,
            summary=summary,
            plots=plots_rel,
        )

        logger.info("Report written: %s", report_path)
        print(str(report_path))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def cmd_place(args: argparse.Namespace) -> int:
    _setup_logging(args.verbose, logfile=None)

    try:
        set1 = load_tree_set(args.set1)
        set2 = load_tree_set(args.set2)
        for label, trees, idx in (("--tree1", set1, args.tree1), ("--tree2", set2, args.tree2)):
            if not 0 <= idx < len(trees):
                raise ValueError(f"{label} {idx} is out of range (set has {len(trees)} trees)")
        harmonise_contigs(set1, set2, str(args.contig_style))

        t1, t2 = set1[args.tree1], set2[args.tree2]
        placements = explain_placements(t1.root, t2.root, int(args.resolution))
        header = ["node", "placeable", "anchor", "compatible_children", "remainder_size", "remainder"]
        print("\t".join(header))
        for pl in placements:
            row = [
                pl.node,
                int(pl.placeable),
                pl.anchor if pl.anchor is not None else ".",
                pl.compatible_children,
                len(pl.remainder),
                ",".join(e.label() for e in pl.remainder) or ".",
            ]
            print("\t".join(str(x) for x in row))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=None)


def cmd_validate(args: argparse.Namespace) -> int:
    _setup_logging(args.verbose, logfile=None)

    try:
        n_problems = 0
        for path in args.treefiles:
            for t in load_tree_set(path):
                problems = check_tree(t.root, int(args.resolution))
                status = "OK" if not problems else f"{len(problems)} problem(s)"
                print(f"{path}\t{t.name}\t{status}")
                for msg in problems:
                    print(f"  - {msg}")
                n_problems += len(problems)
        return 0 if n_problems == 0 else 1
    except Exception as e:
        return _handle_error(e, log_path=None)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "compare":
        return cmd_compare(args)
    if args.cmd == "place":
        return cmd_place(args)
    if args.cmd == "validate":
        return cmd_validate(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
