"""Scan command: digest matching files into a tabular output file."""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from tqdm import tqdm

from dirdigest.cli._app import app
from dirdigest.cli._common import setup_logging
from dirdigest.cli._console import console, output_result, print_err, print_ok, print_warn
from dirdigest.config import PipelineConfig, build_config, load_config
from dirdigest.errors import ConfigError, ExitCode, SinkError, UsageError
from dirdigest.pipeline import run_pipeline
from dirdigest.sinks import create_sink


def _resolve_config(config_path: Optional[Path], options: Dict[str, Any]) -> PipelineConfig:
    """Layer explicit options over the config file.

    Raises:
        UsageError: If no output path is given anywhere.
        ConfigError: If the file or the merged values are invalid.
    """
    file_values = load_config(config_path)
    if not options.get("output") and not file_values.get("output"):
        raise UsageError("Missing option '-o' / '--output'")
    return build_config(file_values, options)


@app.command("scan", help="Digest files whose name matches a pattern into a spreadsheet.")
def scan_cmd(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "-o", "--output",
        help="Output file path (.xlsx, .csv or .tsv) [required]",
    ),
    directory: Optional[str] = typer.Option(
        None,
        "-d", "--directory",
        help="Root directory to walk (default: .)",
    ),
    pattern: Optional[str] = typer.Option(
        None,
        "-p", "--pattern",
        help="File name pattern matched against base names (default: *)",
    ),
    regex: Optional[bool] = typer.Option(
        None,
        "--regex/--glob",
        help="Interpret the pattern as a regular expression instead of a glob",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w", "--workers",
        help="Number of parallel digest workers (default: 10)",
    ),
    algorithm: Optional[str] = typer.Option(
        None,
        "-a", "--algorithm",
        help="hashlib digest algorithm (default: md5)",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Abort the run after this many seconds",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="YAML/JSON file with default values for these options",
    ),
    progress: bool = typer.Option(
        False,
        "--progress/--no-progress",
        help="Show a running count of written rows",
    ),
):
    """Walk DIRECTORY, digest every file matching PATTERN and write one row per file."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    try:
        cfg = _resolve_config(
            config,
            {
                "output": output,
                "directory": directory,
                "pattern": pattern,
                "regex": regex,
                "workers": workers,
                "algorithm": algorithm,
                "timeout": timeout,
            },
        )
    except UsageError as e:
        console.print(ctx.get_help())
        print_err(e.message)
        raise SystemExit(int(ExitCode.USAGE))
    except ConfigError as e:
        print_err(e.message)
        raise SystemExit(int(ExitCode.PIPELINE_FAILED))

    try:
        sink = create_sink(cfg.output)
    except SinkError as e:
        print_err(f"Cannot open output: {e}")
        raise SystemExit(int(ExitCode.SINK_FAILED))

    try:
        with tqdm(unit="file", desc="Digesting", disable=not progress, file=sys.stderr) as pbar:
            result = run_pipeline(cfg, sink, on_record=lambda _record: pbar.update(1))
    except KeyboardInterrupt:
        print_warn("Interrupted by user")
        raise SystemExit(int(ExitCode.INTERRUPTED))

    if ctx.obj["json"]:
        output_result(result.to_dict(), ctx=ctx)

    if result.error is not None:
        print_err(f"Pipeline failed: {result.error}")
        if result.sink_error is not None:
            print_err(f"Output also failed: {result.sink_error}")
        raise SystemExit(int(ExitCode.PIPELINE_FAILED))

    if result.sink_error is not None:
        print_err(f"Output failed: {result.sink_error}")
        raise SystemExit(int(ExitCode.SINK_FAILED))

    if not ctx.obj["quiet"] and not ctx.obj["json"]:
        print_ok(f"Wrote {result.rows_written} row(s) to {cfg.output}")
        for name, count in sorted(result.worker_counts.items()):
            if count:
                console.print(f"  {name}: {count}")
