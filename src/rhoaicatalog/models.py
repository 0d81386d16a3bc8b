"""Shared domain models for the RHOAI catalog builder."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from rhoaicatalog.constants import DEFAULT_IMAGE_BUILDER, PACKAGE_NAME


@dataclass(frozen=True)
class RunConfig:
    """Validated options for a single catalog build."""

    bundles: Tuple[str, ...]
    registry: str
    catalog_tag: str
    branch: Optional[str] = None
    operator_image: Optional[str] = None
    no_build: bool = False
    image_builder: str = DEFAULT_IMAGE_BUILDER
    dry_run: bool = False

    @property
    def builds_operator(self) -> bool:
        return not self.no_build and not self.operator_image

    @property
    def mode(self) -> str:
        if self.no_build:
            return "no-build (all bundles as-is)"
        if self.operator_image:
            return "hybrid with pre-built operator"
        return "hybrid (build operator from branch)"


@dataclass
class RunState:
    """Outputs and restorable side effects accumulated during a run."""

    temp_dir: Optional[str] = None
    original_branch: Optional[str] = None
    target_branch: Optional[str] = None
    stashed_changes: bool = False
    opm_bin: str = "opm"
    operator_image: Optional[str] = None
    hybrid_bundle_image: Optional[str] = None
    resolved_images: List[str] = field(default_factory=list)
    catalog_image: Optional[str] = None


@dataclass(frozen=True)
class VerificationResult:
    package_name: Optional[str]
    bundle_count: int
    expected_bundle_count: int
    channel_entries: Tuple[Tuple[str, Optional[str]], ...] = ()

    @property
    def package_ok(self) -> bool:
        return self.package_name == PACKAGE_NAME

    @property
    def bundle_count_ok(self) -> bool:
        return self.bundle_count == self.expected_bundle_count


@dataclass(frozen=True)
class CommitSearchResult:
    found: bool
    bundle: Optional[str] = None
    operator_image: Optional[str] = None
    commit: Optional[str] = None
