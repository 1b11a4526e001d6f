"""Command-line interface for the classpath duplicate-class checker."""

from pathlib import Path
from typing import List

import click
from rich.console import Console

from . import __version__
from .config import Config
from .core.analyzer import ClassUniquenessAnalyzer
from .core.artifacts import ResolvedArtifact, artifacts_from_paths, load_manifest
from .core.errors import ArchiveReadError, ManifestError
from .core.reporting import DIFFERING_KIND, Reporter, build_issues
from .utils.logging_setup import log_operation, setup_logging

EXIT_OK = 0
EXIT_DUPLICATES = 1
EXIT_FATAL = 2


@click.group(name="classuniq")
@click.version_option(__version__, prog_name="classuniq")
def main():
    """Detect classes provided by more than one dependency artifact."""
    pass


@main.command(name="check")
@click.argument("jars", nargs=-1, type=click.Path(path_type=Path))
@click.option(
    "--manifest", "-m",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    multiple=True,
    help="YAML/JSON manifest of resolved artifacts (can be given multiple times)"
)
@click.option(
    "--config", "-c", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file"
)
@click.option("--json", "as_json", is_flag=True, help="Output results as JSON")
@click.option("--workers", "-w", type=click.IntRange(min=1), help="Threads used to scan archives")
@click.option(
    "--fail-on-identical",
    is_flag=True,
    help="Also fail when duplicated classes are byte-identical"
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def check(ctx, jars, manifest, config_path, as_json, workers, fail_on_identical, verbose):
    """Check JARS (and/or manifest artifacts) for duplicate classes."""
    config = Config.from_file(config_path) if config_path else Config.find_and_load()

    if workers is not None:
        config.set("analysis.max_workers", workers)
    if as_json:
        config.set("report.format", "json")
    if fail_on_identical:
        config.set("report.fail_on_identical", True)
    if verbose:
        config.set("logging.level", "DEBUG")

    log = setup_logging(
        "classuniq",
        level=config.get("logging.level", "WARNING"),
        file=bool(config.get("logging.file", False)),
        log_dir=config.get("logging.log_dir"),
    )
    log_operation(log, "check", jars=len(jars), manifests=len(manifest))

    artifacts: List[ResolvedArtifact] = artifacts_from_paths(jars)
    try:
        for manifest_path in manifest:
            artifacts.extend(load_manifest(manifest_path))
    except ManifestError as e:
        click.echo(f"Error: {e.message}", err=True)
        ctx.exit(EXIT_FATAL)

    if not artifacts:
        raise click.UsageError("No artifacts given; pass jar paths or --manifest")

    analyzer = ClassUniquenessAnalyzer(
        log=log.getChild("analyzer"),
        max_workers=config.get("analysis.max_workers", 1),
        chunk_size=config.get("analysis.chunk_size"),
    )
    try:
        analyzer.analyze(artifacts)
    except ArchiveReadError as e:
        log.error("Failed to read jar %s", e.artifact, exc_info=verbose)
        click.echo(f"Error: {e.message}", err=True)
        ctx.exit(EXIT_FATAL)

    issues = build_issues(analyzer)
    reporter = Reporter(Console(emoji=False), max_classes_shown=config.get("report.max_classes_shown", 10))
    if config.get("report.format") == "json":
        reporter.render_json(issues, artifact_count=len(artifacts))
    else:
        reporter.render_text(issues, artifact_count=len(artifacts))

    if config.get("report.fail_on_identical"):
        failing = list(issues)
    else:
        failing = issues.filter_by_kind(DIFFERING_KIND)
    ctx.exit(EXIT_DUPLICATES if failing else EXIT_OK)


if __name__ == "__main__":
    main()
