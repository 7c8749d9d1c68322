"""
cli.py — Click CLI entrypoint for the Toronto Pulse pipeline.

Usage:
    pulse list
    pulse run bike-share-toronto
    pulse run ttc-vehicles --json > vehicles.json
    pulse check-config my-source.json
    pulse scaffold dataset-metadata.json --out sources/
    pulse catalog red-light-cameras
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click
import structlog

from pulse_pipeline.exceptions import FetchError, PulseError
from pulse_pipeline.plugins.base import PipelineResult
from pulse_pipeline.plugins.loader import load_builtin_plugins, load_source_config
from pulse_pipeline.plugins.registry import PluginRegistry
from pulse_pipeline.scaffold import generate_source_config, write_source_config
from pulse_pipeline.sources.ckan import CkanDatastoreFetcher
from pulse_pipeline.utils.logging import configure_logging
from pulse_pipeline.utils.retry import with_retry
from pulse_shared.config import settings
from pulse_shared.constants import DOMAINS
from pulse_shared.models.dataset import DatasetMetadata

log = structlog.get_logger(__name__)


async def _registry() -> PluginRegistry:
    registry = PluginRegistry()
    await load_builtin_plugins(registry)
    return registry


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Log level",
)
@click.option(
    "--log-format",
    default=settings.log_format,
    type=click.Choice(["json", "console"]),
    help="Log renderer (logs go to stderr)",
)
def main(log_level: str, log_format: str) -> None:
    """Toronto Pulse data-source pipeline."""
    configure_logging(log_level, log_format)


@main.command("list")
def list_sources() -> None:
    """List registered data sources."""
    registry = asyncio.run(_registry())
    for plugin in registry.all():
        meta = plugin.metadata
        click.echo(
            f"  {meta.id:40s} {meta.domain:15s} {meta.reliability:7s} "
            f"every {meta.refresh_interval_ms // 1000}s"
        )


def _summary(result: PipelineResult) -> None:
    mark = "✓" if result.valid else "✗"
    click.echo(
        f"{mark} {result.source_id}: {result.feature_count} features, "
        f"{len(result.validation.errors)} errors, "
        f"{len(result.validation.warnings)} warnings ({result.duration_ms} ms)"
    )
    for error in result.validation.errors:
        click.echo(f"  error:   {error}")
    for warning in result.validation.warnings:
        click.echo(f"  warning: {warning}")


@main.command()
@click.argument("source_id")
@click.option("--json", "as_json", is_flag=True, help="Print GeoJSON and validation as JSON")
def run(source_id: str, as_json: bool) -> None:
    """Run fetch → transform → validate once for SOURCE_ID."""

    async def _run() -> PipelineResult:
        registry = await _registry()
        return await registry.get(source_id).run()

    try:
        result = asyncio.run(_run())
    except PulseError as exc:
        click.echo(f"✗ {source_id}: {type(exc).__name__}: {exc.message}", err=True)
        raise SystemExit(1) from exc

    if as_json:
        payload = {
            "source_id": result.source_id,
            "completed_at": result.completed_at.isoformat(),
            "duration_ms": result.duration_ms,
            "collection": result.collection.to_geojson(),
            "validation": result.validation.model_dump(mode="json", exclude={"data"}),
        }
        click.echo(json.dumps(payload, ensure_ascii=False))
    else:
        _summary(result)

    if not result.valid:
        raise SystemExit(1)


@main.command("check-config")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def check_config(path: Path) -> None:
    """Validate a JSON source descriptor."""
    try:
        config = load_source_config(path)
    except PulseError as exc:
        click.echo(exc.message, err=True)
        raise SystemExit(1) from exc
    meta = config.metadata
    click.echo(f"✓ {path}: {meta.id} ({meta.domain}, {config.api.kind})")


@main.command()
@click.argument("metadata_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--out",
    "out_dir",
    default=Path("."),
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the generated descriptor",
)
@click.option("--domain", default="infrastructure", type=click.Choice(list(DOMAINS)))
@click.option("--refresh-interval-ms", default=300_000, type=click.IntRange(min=1000))
def scaffold(metadata_path: Path, out_dir: Path, domain: str, refresh_interval_ms: int) -> None:
    """Generate a source descriptor from a DatasetMetadata JSON document."""
    try:
        dataset = DatasetMetadata.model_validate_json(metadata_path.read_text(encoding="utf-8"))
    except ValueError as exc:
        click.echo(f"Invalid dataset metadata {metadata_path}: {exc}", err=True)
        raise SystemExit(1) from exc

    config = generate_source_config(
        dataset, domain=domain, refresh_interval_ms=refresh_interval_ms  # type: ignore[arg-type]
    )
    path = write_source_config(config, out_dir)
    click.echo(f"✓ Wrote {path}")


@main.command()
@click.argument("package_id")
@click.option("--attempts", default=3, type=click.IntRange(min=1), help="Retry attempts")
def catalog(package_id: str, attempts: int) -> None:
    """Look up a CKAN package and list its datastore resources."""
    fetcher = CkanDatastoreFetcher(package_id)
    package_show = with_retry(max_attempts=attempts)(fetcher.package_show)
    try:
        package = asyncio.run(package_show())
    except FetchError as exc:
        click.echo(f"✗ {package_id}: {exc.message}", err=True)
        raise SystemExit(1) from exc

    click.echo(f"{package.get('title', package_id)} ({package.get('name', package_id)})")
    resources = CkanDatastoreFetcher.datastore_resources(package)
    if not resources:
        click.echo("  No datastore resources.")
    for resource in resources:
        click.echo(f"  {resource['id']}  {resource.get('name', '')}  {resource.get('format', '')}")


if __name__ == "__main__":
    main()
