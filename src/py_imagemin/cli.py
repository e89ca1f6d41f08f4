"""命令行入口。

    $ py-imagemin <path|glob> ... --out-dir=build [--plugin=<name> ...]
    $ py-imagemin <file> > <output>
    $ cat <file> | py-imagemin > <output>

图像数据只写入标准输出，进度和诊断信息只写入标准错误。
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from . import __version__
from .engine.reporter import RichConsoleSink
from .exceptions import ImageminError
from .models import ExecutorType, ProcessingOptions, ReportLevel
from .optimizer import ImageOptimizer
from .utils.logging_helpers import get_logger, setup_logging

app = typer.Typer(
    help="Minify images seamlessly.",
    add_completion=False,
)

EXAMPLES = """
Examples:

  $ py-imagemin images/* --out-dir=build

  $ py-imagemin foo.png > foo-optimized.png

  $ cat foo.png | py-imagemin > foo-optimized.png

  $ py-imagemin --plugin=pngquant foo.png > foo-optimized.png
"""


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"py-imagemin {__version__}")
        raise typer.Exit()


def _report_level(verbose: bool, quiet: bool, silent: bool) -> ReportLevel:
    flags = (("--verbose", verbose), ("--quiet", quiet), ("--silent", silent))
    selected = [flag for flag, enabled in flags if enabled]
    if len(selected) > 1:
        raise typer.BadParameter(f"{' and '.join(selected)} cannot be used together")
    if verbose:
        return ReportLevel.VERBOSE
    if quiet:
        return ReportLevel.QUIET
    return ReportLevel.SILENT


@app.command(epilog=EXAMPLES)
def run_cli(  # noqa: PLR0913
    inputs: Optional[List[str]] = typer.Argument(None, help="Paths or glob patterns; reads stdin when omitted"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Python module exporting `plugins`"),
    cwd: Optional[Path] = typer.Option(None, "--cwd", "-d", help="Current working directory"),
    plugin: Optional[List[str]] = typer.Option(None, "--plugin", "-p", help="Override the default plugins"),
    out_dir: Optional[Path] = typer.Option(None, "--out-dir", "-o", help="Output directory"),
    parents: bool = typer.Option(False, "--parents", "-a", "--recursive", "-r", help="Save structure directory"),
    max_concurrency: Optional[int] = typer.Option(
        None, "--max-concurrency", "-m", min=1, help="Maximum images processed at once (default: CPU count)"
    ),
    executor: Optional[ExecutorType] = typer.Option(None, "--executor", case_sensitive=False, help="Worker pool type"),
    ignore_errors: bool = typer.Option(False, "--ignore-errors", "-i", help="Do not fail the run on image errors"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Report every image and a final summary"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Report errors only"),
    silent: bool = typer.Option(False, "--silent", "-s", help="Report nothing"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    """Minify images seamlessly."""

    del version
    setup_logging()
    logger = get_logger(__name__)

    report_level = _report_level(verbose, quiet, silent)

    stdin = sys.stdin.buffer
    if not inputs and stdin.isatty():
        typer.echo("Specify at least one filename", err=True)
        raise typer.Exit(code=1)

    settings = {
        "config_path": config,
        "cwd": cwd,
        "plugins": plugin or None,
        "out_dir": out_dir,
        "max_concurrency": max_concurrency,
        "executor_type": executor,
    }
    options = ProcessingOptions(
        preserve_tree=parents,
        ignore_errors=ignore_errors,
        report_level=report_level,
        **{key: value for key, value in settings.items() if value is not None},
    )
    logger.debug("CLI 参数解析完成")

    optimizer = ImageOptimizer(
        options,
        sink=RichConsoleSink(Console(stderr=True, highlight=False)),
        output=sys.stdout.buffer,
    )

    try:
        optimizer.run(list(inputs) if inputs else stdin.read())
    except ImageminError as e:
        typer.echo(e.message, err=True)
        raise typer.Exit(code=1) from e


def main() -> None:
    """控制台脚本入口"""
    app()


if __name__ == "__main__":
    main()
