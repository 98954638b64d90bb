"""Command line entry point for S3 resources."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import click

from .exceptions import S3ResourcesError
from .main import S3ResourcesApp
from .utils import ListingReportGenerator

LOGGER = logging.getLogger(__name__)

ADHOC_COLLECTION = "adhoc"


_SELECTION_OPTIONS = [
    click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Path to the YAML configuration file."),
    click.option("--collection", "collection_name", help="Configured collection to use."),
    click.option("--bucket", help="Bucket to enumerate without a configuration file."),
    click.option("--include", "includes", multiple=True, help="Include pattern (repeatable)."),
    click.option("--exclude", "excludes", multiple=True, help="Exclude pattern (repeatable)."),
    click.option("--as", "precision", type=click.Choice(["object", "version"]), default="object", show_default=True, help="Enumerate current objects or every version."),
    click.option("--delimiter", default="/", show_default=True, help="Key delimiter."),
    click.option("--case-insensitive", is_flag=True, help="Match patterns without case sensitivity."),
    click.option("--page-size", type=click.IntRange(1, 1000), help="Maximum keys per listing request."),
    click.option("--region", help="AWS region."),
    click.option("--profile", help="AWS profile."),
    click.option("--endpoint-url", help="S3-compatible endpoint URL."),
    click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False), help="Override logging level."),
]


def selection_options(func):
    """Attach the options shared by every command that selects a collection."""
    for option in reversed(_SELECTION_OPTIONS):
        func = option(func)
    return func


def _adhoc_config(options: Dict[str, Any]) -> Dict[str, Any]:
    aws: Dict[str, str] = {}
    for key in ("region", "profile", "endpoint_url"):
        if options.get(key):
            aws[key] = options[key]
    collection: Dict[str, Any] = {
        "name": ADHOC_COLLECTION,
        "bucket": options["bucket"],
        "precision": options["precision"],
        "delimiter": options["delimiter"],
        "includes": list(options["includes"]),
        "excludes": list(options["excludes"]),
        "case_sensitive": not options["case_insensitive"],
    }
    if options.get("page_size"):
        collection["page_size"] = options["page_size"]
    return {"aws": aws, "collections": [collection], "logging": {"level": "WARNING"}}


def _build_app(options: Dict[str, Any]) -> Tuple[S3ResourcesApp, str]:
    config_path: Optional[str] = options.get("config_path")
    log_level: Optional[str] = options.get("log_level")
    if config_path:
        if not options.get("collection_name"):
            raise click.UsageError("--collection is required with --config.")
        return S3ResourcesApp.from_file(config_path, log_level=log_level), options["collection_name"]

    if not options.get("bucket"):
        raise click.UsageError("Either --config with --collection, or --bucket, is required.")
    return S3ResourcesApp.from_mapping(_adhoc_config(options), log_level=log_level), ADHOC_COLLECTION


@click.group()
@click.version_option(version="1.0.0")
def main() -> None:
    """Enumerate S3 objects as pattern-filtered resources."""


@main.command("list")
@selection_options
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text", show_default=True, help="Output format.")
@click.option("--report", is_flag=True, help="Also write listing reports to the configured output directory.")
def list_command(output_format: str, report: bool, **options: Any) -> None:
    """Print the resources of a collection."""
    try:
        app, name = _build_app(options)
        resources = app.list_collection(name, report=report)
    except S3ResourcesError as exc:
        LOGGER.error("Execution failed: %s", exc)
        raise SystemExit(1) from exc

    if output_format == "json":
        generator = ListingReportGenerator()
        click.echo(generator.dumps([resource.to_dict() for resource in resources]))
        return
    for resource in resources:
        click.echo(str(resource))


@main.command("count")
@selection_options
def count_command(**options: Any) -> None:
    """Print the number of resources in a collection."""
    try:
        app, name = _build_app(options)
        count = app.count_collection(name)
    except S3ResourcesError as exc:
        LOGGER.error("Execution failed: %s", exc)
        raise SystemExit(1) from exc
    click.echo(str(count))


if __name__ == "__main__":
    main()
