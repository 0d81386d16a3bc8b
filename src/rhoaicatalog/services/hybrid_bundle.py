"""Hybrid bundle image construction."""

import os

from rhoaicatalog.constants import BUNDLE_LABELS, BUNDLE_REPOSITORY, IMAGE_PLATFORM
from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.errors_catalog import actionable_error
from rhoaicatalog.services.arguments import image_tag
from rhoaicatalog.services.bundle_extractor import BundleExtractor, find_csv
from rhoaicatalog.services.csv_manifest import CsvPatcher, related_image_names


def hybrid_bundle_image(source_image: str, registry: str) -> str:
    return f"{registry}/{BUNDLE_REPOSITORY}:hybrid-{image_tag(source_image)}"


class HybridBundleService:
    """Repackages a production bundle with a custom operator image.

    The production manifests and metadata are copied out of the source image,
    only the operator container image and the ``containerImage`` annotation of
    the CSV are rewritten, and the result is built into a ``FROM scratch``
    bundle image. RELATED_IMAGE environment variables are carried over as-is.
    """

    def __init__(self, runner, logger, console, image_builder: str, work_dir: str):
        self.runner = runner
        self.logger = logger
        self.console = console
        self.image_builder = image_builder
        self.work_dir = work_dir
        self.extractor = BundleExtractor(runner=runner, logger=logger, image_builder=image_builder)
        self.patcher = CsvPatcher(logger=logger, console=console)

    def build_dockerfile(self) -> str:
        labels = "\n".join(f"LABEL {key}={value}" for key, value in BUNDLE_LABELS)
        return f"""
FROM scratch

{labels}

COPY manifests /manifests/
COPY metadata /metadata/
""".strip() + "\n"

    def hybridize(self, source_image: str, operator_image: str, registry: str) -> str:
        self.console.print("[blue]Building hybrid bundle...[/blue]")
        self.logger.info("  Source bundle: %s", source_image)
        self.logger.info("  Operator image: %s", operator_image)

        target_image = hybrid_bundle_image(source_image, registry)
        extract_dir = os.path.join(self.work_dir, "hybrid-bundle")

        if self.runner.dry_run:
            self.logger.info("[DRY-RUN] Would extract manifests/ and metadata/ from %s", source_image)
            self.logger.info("[DRY-RUN] Would patch the CSV with image %s", operator_image)
            self.logger.info("[DRY-RUN] Would build hybrid bundle: %s", target_image)
            return target_image

        self.logger.info("Extracting bundle: %s", source_image)
        self.extractor.extract(source_image, extract_dir)

        manifests_dir = os.path.join(extract_dir, "manifests")
        csv_path = find_csv(manifests_dir)
        if csv_path is None:
            raise CatalogBuilderError(actionable_error("csv_not_found", path=manifests_dir))

        related = related_image_names(csv_path)
        self.console.print(f"[green]Extracted bundle: {csv_path.name}[/green]")
        self.logger.info("  CSV: %s", csv_path)
        self.logger.info("  RELATED_IMAGE env vars: %s", len(related))

        self.patcher.patch(csv_path, operator_image)

        dockerfile = os.path.join(self.work_dir, "hybrid-bundle.Dockerfile")
        with open(dockerfile, "w", encoding="utf-8", newline="\n") as file_obj:
            file_obj.write(self.build_dockerfile())

        self.logger.info("Building hybrid bundle image: %s", target_image)
        self.runner.execute(
            [
                self.image_builder,
                "build",
                "--no-cache",
                "--load",
                "-f",
                dockerfile,
                "--platform",
                IMAGE_PLATFORM,
                "-t",
                target_image,
                extract_dir,
            ]
        )
        self.logger.info("Pushing hybrid bundle image...")
        self.runner.execute([self.image_builder, "push", target_image])

        self.console.print(f"[green]Hybrid bundle built and pushed: {target_image}[/green]")
        return target_image
