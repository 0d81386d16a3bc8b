"""Bundle image content extraction."""

import os
from pathlib import Path
from typing import Iterable, Optional

from rhoaicatalog.constants import BUNDLE_PATHS, CSV_PATTERNS, IMAGE_PLATFORM
from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.errors_catalog import actionable_error


def find_csv(manifests_dir: str) -> Optional[Path]:
    root = Path(manifests_dir)
    if not root.is_dir():
        return None

    matches = set()
    for pattern in CSV_PATTERNS:
        matches.update(path for path in root.rglob(pattern) if path.is_file())
    if not matches:
        return None
    return sorted(matches)[0]


class BundleExtractor:
    """Copies paths out of an image through a created, never-started container."""

    def __init__(self, runner, logger, image_builder: str):
        self.runner = runner
        self.logger = logger
        self.image_builder = image_builder

    def extract(self, image: str, dest_dir: str, paths: Iterable[str] = BUNDLE_PATHS):
        os.makedirs(dest_dir, exist_ok=True)

        try:
            result = self.runner.run(
                [self.image_builder, "create", "--platform", IMAGE_PLATFORM, image],
                capture_output=True,
            )
        except CatalogBuilderError as exc:
            raise CatalogBuilderError(
                actionable_error("bundle_pull_failed", image=image, builder=self.image_builder)
            ) from exc

        lines = [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]
        container_id = lines[-1] if lines else ""
        if not container_id:
            raise CatalogBuilderError(
                actionable_error("bundle_pull_failed", image=image, builder=self.image_builder)
            )

        try:
            for path in paths:
                target = os.path.join(dest_dir, path.strip("/"))
                try:
                    self.runner.run(
                        [self.image_builder, "cp", f"{container_id}:{path}", target],
                        capture_output=True,
                    )
                except CatalogBuilderError as exc:
                    raise CatalogBuilderError(
                        actionable_error("bundle_copy_failed", path=path, image=image)
                    ) from exc
        finally:
            self.runner.run(
                [self.image_builder, "rm", container_id],
                check=False,
                capture_output=True,
            )
