"""Post-push catalog verification."""

from typing import Optional

from rhoaicatalog.constants import PACKAGE_NAME, SCHEMA_BUNDLE, SCHEMA_CHANNEL, SCHEMA_PACKAGE
from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.models import VerificationResult
from rhoaicatalog.services.opm import documents_with_schema


class CatalogVerifier:
    """Re-renders the pushed catalog and reports mismatches as warnings."""

    def __init__(self, runner, opm_service, logger, console):
        self.runner = runner
        self.opm = opm_service
        self.logger = logger
        self.console = console

    def _warn(self, message: str):
        self.console.print(f"[yellow]{message}[/yellow]")
        self.logger.warning(message)

    def verify(self, image: str, expected_bundle_count: int) -> Optional[VerificationResult]:
        if self.runner.dry_run:
            self.logger.info("[DRY-RUN] Would verify catalog: %s", image)
            return None

        self.logger.info("Verifying catalog: %s", image)
        try:
            _, documents = self.opm.render(image)
        except CatalogBuilderError as exc:
            self.logger.debug("Catalog render failed: %s", exc)
            self._warn("Could not render catalog for verification (may not be pulled yet)")
            return None

        packages = documents_with_schema(documents, SCHEMA_PACKAGE)
        package_name = packages[0].get("name") if packages else None
        bundle_count = len(documents_with_schema(documents, SCHEMA_BUNDLE))

        entries = []
        for channel in documents_with_schema(documents, SCHEMA_CHANNEL):
            for entry in channel.get("entries") or []:
                if isinstance(entry, dict) and entry.get("name"):
                    entries.append((entry["name"], entry.get("replaces")))

        result = VerificationResult(
            package_name=package_name,
            bundle_count=bundle_count,
            expected_bundle_count=expected_bundle_count,
            channel_entries=tuple(entries),
        )

        if result.package_ok:
            self.console.print(f"[green]  Package: {PACKAGE_NAME}[/green]")
        else:
            self._warn(f"  Unexpected package name: {package_name}")

        bundles_line = f"  Bundles: {bundle_count} (expected {expected_bundle_count})"
        if result.bundle_count_ok:
            self.console.print(f"[green]{bundles_line}[/green]")
        else:
            self._warn(bundles_line)

        self.logger.info("  Channel entries:")
        for name, replaces in result.channel_entries:
            suffix = f"(replaces: {replaces})" if replaces else "(head)"
            self.logger.info("    - %s %s", name, suffix)

        self.console.print("[green]Catalog verification complete[/green]")
        return result
