"""Argument resolution for the RHOAI catalog builder."""

from typing import Iterable, Optional, Sequence

from rhoaicatalog.constants import DEFAULT_IMAGE_BUILDER
from rhoaicatalog.errors import UsageError
from rhoaicatalog.models import RunConfig


def image_tag(image: str) -> str:
    """Return the trailing ``:``-delimited segment of an image reference."""
    return image.rsplit(":", 1)[-1]


def derive_catalog_tag(bundles: Iterable[str], no_build: bool) -> str:
    tag = "-".join(image_tag(bundle) for bundle in bundles)
    if no_build:
        return tag
    return f"{tag}-hybrid"


def resolve_run_config(
    bundles: Sequence[str],
    registry: Optional[str],
    branch: Optional[str] = None,
    operator_image: Optional[str] = None,
    catalog_tag: Optional[str] = None,
    no_build: bool = False,
    image_builder: Optional[str] = None,
    dry_run: bool = False,
) -> RunConfig:
    """Validates raw option values and builds an immutable RunConfig.

    Raises UsageError before any external command is attempted.
    """
    bundle_list = tuple(bundle.strip() for bundle in bundles or () if bundle and bundle.strip())
    if not bundle_list:
        raise UsageError("At least one --bundle is required")

    if not registry or not registry.strip():
        raise UsageError("Missing required argument: --registry")

    if operator_image and no_build:
        raise UsageError("--operator-image and --no-build are mutually exclusive")

    return RunConfig(
        bundles=bundle_list,
        registry=registry.strip().rstrip("/"),
        catalog_tag=catalog_tag or derive_catalog_tag(bundle_list, no_build),
        branch=branch or None,
        operator_image=operator_image or None,
        no_build=bool(no_build),
        image_builder=image_builder or DEFAULT_IMAGE_BUILDER,
        dry_run=bool(dry_run),
    )
