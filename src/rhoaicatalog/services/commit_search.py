"""Locate the catalog bundle whose operator image was built from a given commit."""

import hashlib
import json
import os
import re
from typing import List, Optional, Tuple

from rhoaicatalog.constants import REVISION_LABEL, SCHEMA_BUNDLE
from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.models import CommitSearchResult
from rhoaicatalog.services.bundle_extractor import BundleExtractor, find_csv
from rhoaicatalog.services.csv_manifest import operator_image
from rhoaicatalog.services.opm import documents_with_schema


def normalize_version(version: str) -> str:
    normalized = version[1:] if version.startswith("v") else version
    if normalized.startswith("rhoai-"):
        normalized = normalized[len("rhoai-"):]
    return normalized


def commits_match(found: str, wanted: str) -> bool:
    return found.startswith(wanted) or wanted.startswith(found)


class CommitSearchService:
    """Searches the bundles of one RHOAI version in a catalog for an operator commit."""

    def __init__(self, runner, opm_service, logger, console, image_builder: str, work_dir: str):
        self.runner = runner
        self.opm = opm_service
        self.logger = logger
        self.console = console
        self.image_builder = image_builder
        self.work_dir = work_dir
        self.extractor = BundleExtractor(runner=runner, logger=logger, image_builder=image_builder)

    def _warn(self, message: str):
        self.console.print(f"[yellow]{message}[/yellow]")
        self.logger.warning(message)

    def matching_bundles(self, documents, version: str) -> List[Tuple[str, str]]:
        pattern = re.compile(r"\." + re.escape(version) + r"[.0-9]*$")
        matches = []
        for document in documents_with_schema(documents, SCHEMA_BUNDLE):
            name = document.get("name") or ""
            image = document.get("image")
            if image and pattern.search(name):
                matches.append((name, image))
        return matches

    def image_revision(self, image: str) -> Optional[str]:
        result = self.runner.run(
            [self.image_builder, "inspect", image],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return None
        try:
            inspected = json.loads(result.stdout or "[]")
        except json.JSONDecodeError:
            return None
        if not inspected or not isinstance(inspected, list):
            return None
        labels = inspected[0].get("Labels") or {}
        return labels.get(REVISION_LABEL) or None

    def bundle_revision(self, bundle_image: str) -> Tuple[Optional[str], Optional[str]]:
        """Returns (operator image, commit) for a bundle, or Nones with a warning."""
        digest = hashlib.md5(bundle_image.encode("utf-8")).hexdigest()
        bundle_dir = os.path.join(self.work_dir, f"bundle-{digest}")
        try:
            self.extractor.extract(bundle_image, bundle_dir, paths=("/manifests",))
        except CatalogBuilderError as exc:
            self._warn(f"Failed to extract manifests from bundle: {exc}")
            return None, None

        csv_path = find_csv(os.path.join(bundle_dir, "manifests"))
        if csv_path is None:
            self._warn("No CSV found in bundle")
            return None, None

        image = operator_image(csv_path)
        if not image:
            self._warn("No operator image found in CSV")
            return None, None
        self.logger.info("Operator image: %s", image)

        commit = self.image_revision(image)
        if not commit:
            self._warn("No git commit found in operator image labels")
            return image, None
        self.logger.info("Found commit in operator image: %s", commit)
        return image, commit

    def search(self, catalog: str, version: str, commit: str) -> CommitSearchResult:
        normalized = normalize_version(version)
        self.console.print(f"[bold cyan]==> Searching for commit {commit} in {catalog}[/bold cyan]")
        self.logger.info("Version: %s (normalized: %s)", version, normalized)

        try:
            _, documents = self.opm.render(catalog)
        except CatalogBuilderError as exc:
            raise CatalogBuilderError(f"Failed to render catalog: {catalog}\n{exc}") from exc

        bundles = self.matching_bundles(documents, normalized)
        if not bundles:
            self._warn(f"No bundles found matching version: {normalized}")
            self.logger.info("Available bundles in catalog:")
            for document in documents_with_schema(documents, SCHEMA_BUNDLE):
                self.logger.info("  - %s (%s)", document.get("name"), document.get("image"))
            return CommitSearchResult(found=False)

        self.console.print(f"[green]Found {len(bundles)} bundle(s) matching version {normalized}[/green]")

        for name, bundle_image in bundles:
            self.console.print(f"[bold cyan]==> Checking bundle: {bundle_image}[/bold cyan]")
            self.logger.info("Bundle name: %s", name)
            image, found_commit = self.bundle_revision(bundle_image)
            if not found_commit:
                continue
            if commits_match(found_commit, commit):
                return CommitSearchResult(
                    found=True,
                    bundle=f"{name} ({bundle_image})",
                    operator_image=image,
                    commit=found_commit,
                )
            self._warn(f"Commit does not match. Expected: {commit}, Found: {found_commit}")

        return CommitSearchResult(found=False)
