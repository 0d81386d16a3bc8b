import logging
import os
import shutil
import tempfile

import click
from rich.console import Console
from rich.logging import RichHandler

from .core import CatalogBuilder, CatalogBuilderError
from .errors import UsageError
from .services.arguments import resolve_run_config
from .services.command_runner import CommandRunner
from .services.commit_search import CommitSearchService, normalize_version
from .services.config_loader import ConfigLoader
from .services.opm import OpmService
from .services.prerequisites import PrerequisiteService


class CatalogUsageError(click.UsageError):
    exit_code = 1


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _configure_logging(logger, verbose: bool, log_file=None):
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command(
    epilog="""
Examples:

  rhoai-catalog-builder --bundle quay.io/rhoai/odh-operator-bundle:rhoai-2.25
  --bundle quay.io/rhoai/odh-operator-bundle:rhoai-3.3 --registry quay.io/myuser

  rhoai-catalog-builder --bundle ...:rhoai-2.25 --bundle ...:rhoai-3.3
  --registry quay.io/myuser --operator-image quay.io/myuser/rhods-operator:custom

  rhoai-catalog-builder --bundle ...:rhoai-2.25 --bundle ...:rhoai-3.3
  --registry quay.io/myuser --no-build
"""
)
@click.option(
    "--bundle",
    "bundles",
    multiple=True,
    help="Bundle image to include (repeatable, order = upgrade chain). The last one is hybridized.",
)
@click.option("--registry", required=False, help="Push registry (e.g., quay.io/myuser).")
@click.option(
    "--branch",
    required=False,
    help="Branch to build the custom operator from (default: current branch).",
)
@click.option(
    "--operator-image",
    required=False,
    help="Pre-built operator image (skips the operator build).",
)
@click.option(
    "--catalog-tag",
    required=False,
    help="Tag for the catalog image (default: derived from the bundle tags).",
)
@click.option("--no-build", is_flag=True, default=None, help="Use all bundles as-is, no hybrid build.")
@click.option(
    "--image-builder",
    required=False,
    help="Container build tool (default: podman).",
)
@click.option("--dry-run", is_flag=True, default=None, help="Print commands without executing them.")
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .rhoai-catalog-builder.yml if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.pass_context
def main(
    ctx,
    bundles,
    registry,
    branch,
    operator_image,
    catalog_tag,
    no_build,
    image_builder,
    dry_run,
    config,
    verbose,
    log_file,
):
    """Build a custom RHOAI catalog for testing operator upgrades.

    All --bundle images except the last are used as-is. The last one is
    hybridized: its production CSV and RELATED_IMAGEs are kept and only the
    operator image is swapped for a custom one.
    """
    logger = logging.getLogger("rhoaicatalog")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), ConfigLoader.DEFAULT_FILE_NAME)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except CatalogBuilderError as exc:
        raise click.ClickException(str(exc)) from exc

    bundle_list = list(bundles) if bundles else list(config_values.get("bundles") or [])
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    try:
        run_config = resolve_run_config(
            bundles=bundle_list,
            registry=_resolve_option(registry, config_values, "registry"),
            branch=_resolve_option(branch, config_values, "branch"),
            operator_image=_resolve_option(operator_image, config_values, "operator_image"),
            catalog_tag=_resolve_option(catalog_tag, config_values, "catalog_tag"),
            no_build=bool(_resolve_option(no_build, config_values, "no_build", default=False)),
            image_builder=_resolve_option(image_builder, config_values, "image_builder"),
            dry_run=bool(_resolve_option(dry_run, config_values, "dry_run", default=False)),
        )
    except UsageError as exc:
        raise CatalogUsageError(str(exc), ctx=ctx) from exc

    _configure_logging(logger, verbose, log_file)

    builder = CatalogBuilder(config=run_config)
    raise SystemExit(builder.run())


@click.command()
@click.option(
    "--rhoai-version",
    required=True,
    help="RHOAI version to search (e.g., v3.3, 3.3, rhoai-3.3).",
)
@click.option("--search", "commit", required=True, help="Git commit SHA to search for (full or short).")
@click.option("--catalog", required=True, help="Catalog image to inspect.")
@click.option("--image-builder", default="podman", show_default=True, help="Container tool.")
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
def verify_commit(rhoai_version, commit, catalog, image_builder, verbose):
    """Search for a specific operator commit in the bundles of a catalog."""
    logger = logging.getLogger("rhoaicatalog")
    _configure_logging(logger, verbose)
    console = Console()

    runner = CommandRunner(logger=logger, console=console)
    prerequisites = PrerequisiteService(
        runner=runner, logger=logger, console=console, repo_dir=os.getcwd()
    )
    work_dir = tempfile.mkdtemp(prefix="rhoai-catalog-verify.")
    try:
        prerequisites.check_commands([image_builder, "opm"])
        service = CommitSearchService(
            runner=runner,
            opm_service=OpmService(runner=runner, logger=logger),
            logger=logger,
            console=console,
            image_builder=image_builder,
            work_dir=work_dir,
        )
        result = service.search(catalog, rhoai_version, commit)
    except CatalogBuilderError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)

    console.print("[bold cyan]==> Results[/bold cyan]")
    if result.found:
        console.print("[green]✓ Commit FOUND![/green]")
        console.print(f"  Bundle:         {result.bundle}", highlight=False)
        console.print(f"  Operator Image: {result.operator_image}", highlight=False)
        console.print(f"  Git Commit:     {result.commit}", highlight=False)
        raise SystemExit(0)

    console.print("[red]✗ Commit NOT FOUND[/red]")
    console.print(f"  Searched for: {commit}", highlight=False)
    console.print(f"  In version:   {normalize_version(rhoai_version)} bundles", highlight=False)
    console.print(f"  Catalog:      {catalog}", highlight=False)
    raise SystemExit(1)


@click.command()
@click.option("--registry-domain", default="quay.io", show_default=True, help="Registry to check login for.")
def check_prerequisites(registry_domain):
    """Check that the tools needed by rhoai-catalog-builder are installed."""
    logger = logging.getLogger("rhoaicatalog")
    console = Console()
    console.print("Checking prerequisites for RHOAI Catalog Builder...")

    runner = CommandRunner(logger=logger, console=console)
    service = PrerequisiteService(runner=runner, logger=logger, console=console, repo_dir=os.getcwd())
    found = service.report(domain=registry_domain)

    missing = [tool for tool, version in found.items() if version is None]
    if missing:
        console.print(f"[red]✗ Missing prerequisites: {' '.join(missing)}[/red]")
        raise SystemExit(1)

    console.print("[green]✓ All required tools are installed![/green]")
    console.print("Next step: try a dry run with `rhoai-catalog-builder --dry-run ...`")


if __name__ == "__main__":
    main()
