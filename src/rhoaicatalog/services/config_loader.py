"""Configuration loader for the RHOAI catalog builder."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from rhoaicatalog.errors import CatalogBuilderError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    DEFAULT_FILE_NAME = ".rhoai-catalog-builder.yml"

    FLAG_KEYS = ("no_build", "dry_run", "verbose")

    SUPPORTED_KEYS = {
        "bundles",
        "registry",
        "branch",
        "operator_image",
        "catalog_tag",
        "no_build",
        "image_builder",
        "dry_run",
        "verbose",
        "log_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise CatalogBuilderError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise CatalogBuilderError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise CatalogBuilderError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise CatalogBuilderError(f"Unknown configuration keys: {unknown_list}")

        for key in self.FLAG_KEYS:
            if key in parsed and not isinstance(parsed[key], bool):
                raise CatalogBuilderError(f"Config key '{key}' must be true or false.")

        bundles = parsed.get("bundles")
        if bundles is not None:
            if isinstance(bundles, str):
                parsed["bundles"] = [bundles]
            elif not isinstance(bundles, list) or not all(isinstance(b, str) for b in bundles):
                raise CatalogBuilderError("Config key 'bundles' must be a list of image references.")

        return parsed
