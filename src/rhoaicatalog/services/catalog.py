"""File-based catalog assembly."""

import os
import shutil
from typing import Any, Dict, List, Optional, Sequence

import yaml

from rhoaicatalog.constants import (
    CATALOG_CHANNEL,
    CATALOG_DIR,
    CATALOG_DOCKERFILE,
    CATALOG_FILE,
    CATALOG_REPOSITORY,
    IMAGE_PLATFORM,
    PACKAGE_NAME,
    SCHEMA_CHANNEL,
    SCHEMA_PACKAGE,
)
from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.errors_catalog import actionable_error
from rhoaicatalog.services.opm import bundle_name


def catalog_image(registry: str, tag: str) -> str:
    return f"{registry}/{CATALOG_REPOSITORY}:{tag}"


def build_upgrade_chain(names: Sequence[str]) -> List[Dict[str, str]]:
    """Each entry replaces its predecessor; input order is kept."""
    entries = []
    previous: Optional[str] = None
    for name in names:
        entry = {"name": name}
        if previous is not None:
            entry["replaces"] = previous
        entries.append(entry)
        previous = name
    return entries


def package_document() -> Dict[str, Any]:
    return {"schema": SCHEMA_PACKAGE, "name": PACKAGE_NAME, "defaultChannel": CATALOG_CHANNEL}


def channel_document(names: Sequence[str]) -> Dict[str, Any]:
    return {
        "schema": SCHEMA_CHANNEL,
        "package": PACKAGE_NAME,
        "name": CATALOG_CHANNEL,
        "entries": build_upgrade_chain(names),
    }


def render_catalog(rendered_bundles: Sequence[str], names: Sequence[str]) -> str:
    """Concatenates package, rendered bundles (verbatim) and channel documents."""
    parts = ["---\n" + yaml.safe_dump(package_document(), sort_keys=False)]
    for rendered in rendered_bundles:
        body = rendered if rendered.endswith("\n") else rendered + "\n"
        parts.append("---\n" + body)
    parts.append("---\n" + yaml.safe_dump(channel_document(names), sort_keys=False))
    return "".join(parts)


class CatalogAssembler:
    """Renders bundles, writes catalog.yaml, validates it and builds the catalog image."""

    def __init__(self, runner, opm_service, logger, console, image_builder: str, repo_dir: str):
        self.runner = runner
        self.opm = opm_service
        self.logger = logger
        self.console = console
        self.image_builder = image_builder
        self.repo_dir = repo_dir
        self.catalog_dir = os.path.join(repo_dir, CATALOG_DIR)

    def assemble(self, images: Sequence[str], registry: str, tag: str) -> str:
        target_image = catalog_image(registry, tag)
        self.console.print(f"[blue]Building catalog with {len(images)} bundles...[/blue]")

        if self.runner.dry_run:
            for image in images:
                self.logger.info("  [DRY-RUN] Would render: %s", image)
            self.logger.info("[DRY-RUN] Would build catalog: %s", target_image)
            return target_image

        if os.path.exists(self.catalog_dir):
            shutil.rmtree(self.catalog_dir)
        os.makedirs(self.catalog_dir)

        rendered_bundles: List[str] = []
        names: List[str] = []
        for index, image in enumerate(images, start=1):
            self.logger.info("Rendering bundle %s/%s: %s", index, len(images), image)
            try:
                rendered, documents = self.opm.render(image)
            except CatalogBuilderError as exc:
                raise CatalogBuilderError(
                    f"{actionable_error('render_failed', image=image, builder=self.image_builder)}\n{exc}"
                ) from exc

            name = bundle_name(documents)
            if not name:
                self.logger.error("Rendered content:\n%s", rendered)
                raise CatalogBuilderError(actionable_error("bundle_name_missing", image=image))

            self.logger.info("  Bundle name: %s", name)
            rendered_bundles.append(rendered)
            names.append(name)

        self.logger.info("Creating upgrade channel with %s entries...", len(names))
        content = render_catalog(rendered_bundles, names)
        catalog_path = os.path.join(self.catalog_dir, CATALOG_FILE)
        with open(catalog_path, "w", encoding="utf-8", newline="\n") as file_obj:
            file_obj.write(content)

        self.validate(content)
        self.log_chain(names)
        self.build_and_push(target_image)
        return target_image

    def validate(self, content: str):
        self.logger.info("Validating catalog...")
        result = self.opm.validate(CATALOG_DIR, cwd=self.repo_dir)
        if result.returncode != 0:
            output = "\n".join(
                part.strip() for part in (result.stdout, result.stderr) if part and part.strip()
            )
            self.logger.error("Catalog content:\n%s", content)
            message = actionable_error("catalog_validation_failed")
            if output:
                message = f"{message}\n{output}"
            raise CatalogBuilderError(message)
        self.console.print("[green]Catalog validation passed[/green]")

    def log_chain(self, names: Sequence[str]):
        self.logger.info("Catalog contents:")
        self.logger.info("  Package: %s", PACKAGE_NAME)
        self.logger.info("  Channel: %s", CATALOG_CHANNEL)
        self.logger.info("  Upgrade chain:")
        for entry in build_upgrade_chain(names):
            if "replaces" in entry:
                self.logger.info("    %s (replaces: %s)", entry["name"], entry["replaces"])
            else:
                self.logger.info("    %s (head)", entry["name"])

    def build_and_push(self, target_image: str):
        self.logger.info("Building catalog image: %s", target_image)
        self.runner.execute(
            [
                self.image_builder,
                "build",
                "--no-cache",
                "--load",
                "-f",
                CATALOG_DOCKERFILE,
                "--platform",
                IMAGE_PLATFORM,
                "-t",
                target_image,
                ".",
            ],
            cwd=self.repo_dir,
        )
        self.logger.info("Pushing catalog image...")
        self.runner.execute([self.image_builder, "push", target_image], cwd=self.repo_dir)
        self.console.print(f"[green]Catalog built and pushed: {target_image}[/green]")
