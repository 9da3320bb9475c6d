"""performkit CLI entry point."""

import sys
from typing import NoReturn

import click

from performkit import __version__
from performkit.errors import DocumentError, ParameterError
from performkit.logging_config import configure_logging
from performkit.params import ModifyParams, apply_modifications
from performkit.performance import iter_performances, select_performance
from performkit.range_reporter import RangeReporter, write_ranges
from performkit.selection import SelectionEngine, parse_keep_ids
from performkit.xml_io import load_document, write_document

EXIT_IO_ERROR = 1
EXIT_USAGE_ERROR = 2

_EXISTING_FILE = click.Path(exists=True, dir_okay=False, readable=True)


def _fail(message: str, code: int) -> NoReturn:
    click.echo(f"  ERROR: {message}", err=True)
    sys.exit(code)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="performkit")
@click.option("--verbose", "-v", is_flag=True, help="Log debug details to stderr.")
def main(verbose: bool) -> None:
    """performkit — select, renormalize and exaggerate musical performances."""
    configure_logging(verbose)


# ── modify subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("mpm_file", type=_EXISTING_FILE)
@click.option(
    "--params",
    "params_file",
    required=True,
    type=_EXISTING_FILE,
    metavar="PATH",
    help="JSON parameter document with 'increase' / 'exaggerate' factors.",
)
@click.option(
    "--output",
    "-o",
    required=True,
    metavar="PATH",
    help="Destination MPM file path.",
)
def modify(mpm_file: str, params_file: str, output: str) -> None:
    """
    Scale tempo transitions, rubato and ornament spread of an MPM performance.

    Every factor f stretches its field by (f + 1); f = 0 leaves it unchanged.

    \b
    Examples:
      performkit modify song.mpm --params params.json -o song_exaggerated.mpm
    """
    click.echo(f"performkit v{__version__}")
    click.echo(f"  MPM    : {mpm_file}")
    click.echo(f"  Params : {params_file}")
    click.echo()

    click.echo("[1/3] Reading parameters and MPM...")
    try:
        params = ModifyParams.load(params_file)
        params.validate()
        document = load_document(mpm_file)
        performances = list(iter_performances(document))
        if not performances:
            raise DocumentError("No performance found in document.")
    except (ParameterError, DocumentError) as exc:
        _fail(str(exc), EXIT_USAGE_ERROR)
    except OSError as exc:
        _fail(f"Could not read input — {exc}", EXIT_IO_ERROR)

    click.echo(f"[2/3] Applying modifications to {len(performances)} performance(s)...")
    for performance in performances:
        counts = apply_modifications(performance, params)
        for dotted, count in counts.items():
            click.echo(f"        {dotted:<28} {count} element(s)")

    click.echo(f"[3/3] Writing MPM file → '{output}'...")
    try:
        write_document(document, output)
    except OSError as exc:
        _fail(f"Could not write MPM file — {exc}", EXIT_IO_ERROR)

    click.echo()
    click.echo(f"Done!  Wrote modified MPM to '{output}'.")


# ── select subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("msm_file", type=_EXISTING_FILE)
@click.option("--mpm", "mpm_file", required=True, type=_EXISTING_FILE, metavar="PATH",
              help="MPM performance whose control curves are reported.")
@click.option("--ranges", "ranges_file", required=True, metavar="PATH",
              help="Destination JSON file for identifier → [start, end] ranges (ms).")
@click.option("--ids", default=None, metavar="ID,ID,...",
              help="Keep only these note ids and shift onsets to the first kept note.")
@click.option("--performance", "performance_index", type=click.IntRange(min=0), default=0,
              show_default=True, help="Index of the performance in the MPM file.")
@click.option("--output", "-o", default=None, metavar="PATH",
              help="Also write the (filtered) performed score to this MSM path.")
def select(
    msm_file: str,
    mpm_file: str,
    ranges_file: str,
    ids: str | None,
    performance_index: int,
    output: str | None,
) -> None:
    """
    Filter a performed score to selected notes and report curve time ranges.

    MSM_FILE is a score already rendered with millisecond dates.

    \b
    Examples:
      performkit select song.msm --mpm song.mpm --ranges ranges.json
      performkit select song.msm --mpm song.mpm --ranges ranges.json --ids n1,n2,n3 -o cut.msm
    """
    keep_ids = parse_keep_ids(ids)

    click.echo(f"performkit v{__version__}")
    click.echo(f"  MSM    : {msm_file}")
    click.echo(f"  MPM    : {mpm_file}  (performance {performance_index})")
    click.echo()

    click.echo("[1/4] Loading score and performance...")
    try:
        score = load_document(msm_file)
        performance = select_performance(load_document(mpm_file), performance_index)
    except DocumentError as exc:
        _fail(str(exc), EXIT_USAGE_ERROR)
    except OSError as exc:
        _fail(f"Could not read input — {exc}", EXIT_IO_ERROR)

    if keep_ids:
        click.echo(f"[2/4] Filtering to {len(keep_ids)} id(s) and shifting onsets...")
        result = SelectionEngine(keep_ids).apply(score)
        click.echo(f"      Window   : [{result.window.min_date}, {result.window.max_date}]")
        click.echo(f"      Kept     : {result.kept}  |  Dropped: {result.dropped}  "
                   f"|  Past window: {result.removed_by_date}")
    else:
        click.echo("[2/4] No ids given; keeping every note.")

    click.echo("[3/4] Resolving control-curve ranges...")
    ranges = RangeReporter.for_score(score).report(performance)
    click.echo(f"      Resolved {len(ranges)} range(s)")

    click.echo(f"[4/4] Writing ranges JSON → '{ranges_file}'...")
    try:
        write_ranges(ranges, ranges_file)
        if output is not None:
            write_document(score, output)
    except OSError as exc:
        _fail(f"Could not write output — {exc}", EXIT_IO_ERROR)

    click.echo()
    click.echo("Done.")
