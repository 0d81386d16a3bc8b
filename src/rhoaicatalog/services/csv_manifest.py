"""ClusterServiceVersion reading and operator image patching."""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from rhoaicatalog.constants import RELATED_IMAGE_PREFIX
from rhoaicatalog.errors import CatalogBuilderError


def guess_indent(text: str) -> Tuple[int, int, int]:
    """Returns the (mapping, sequence, offset) indentation used by ``text``."""
    mapping = sequence = offset = None
    parent = None
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        leading = len(line) - len(line.lstrip(" "))
        if parent is not None and leading > parent:
            if stripped.startswith("- "):
                if sequence is None:
                    offset = leading - parent
                    sequence = offset + len(stripped) - len(stripped[1:].lstrip(" "))
            elif mapping is None:
                mapping = leading - parent
        elif parent == leading and stripped.startswith("- ") and sequence is None:
            offset = 0
            sequence = len(stripped) - len(stripped[1:].lstrip(" "))
        if mapping is not None and sequence is not None:
            break
        parent = leading if stripped.endswith(":") and not stripped.startswith("- ") else None

    mapping = mapping or 2
    if sequence is None:
        return mapping, mapping, 0
    return mapping, sequence, offset


def round_trip_yaml(text: str) -> YAML:
    """A ruamel.yaml round-trip instance that re-emits ``text`` in its own layout."""
    round_trip = YAML()
    round_trip.preserve_quotes = True
    round_trip.width = sys.maxsize
    mapping, sequence, offset = guess_indent(text)
    round_trip.indent(mapping=mapping, sequence=sequence, offset=offset)
    round_trip.explicit_start = text.lstrip().startswith("---")
    return round_trip


def load_csv(csv_path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(Path(csv_path).read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as exc:
        raise CatalogBuilderError(f"Failed to read CSV '{csv_path}': {exc}") from exc
    if not isinstance(data, dict):
        raise CatalogBuilderError(f"CSV '{csv_path}' is not a YAML mapping.")
    return data


def _operator_container(csv: Dict[str, Any], csv_path) -> Dict[str, Any]:
    try:
        container = csv["spec"]["install"]["spec"]["deployments"][0]["spec"]["template"]["spec"][
            "containers"
        ][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise CatalogBuilderError(
            f"CSV '{csv_path}' has no operator container under "
            "spec.install.spec.deployments[0].spec.template.spec.containers[0]"
        ) from exc
    if not isinstance(container, dict):
        raise CatalogBuilderError(f"CSV '{csv_path}' has an invalid operator container entry.")
    return container


def operator_image(csv_path) -> Optional[str]:
    try:
        return _operator_container(load_csv(csv_path), csv_path).get("image")
    except CatalogBuilderError:
        return None


def related_image_names(csv_path) -> List[str]:
    container = _operator_container(load_csv(csv_path), csv_path)
    names = []
    for entry in container.get("env") or []:
        name = entry.get("name") if isinstance(entry, dict) else None
        if isinstance(name, str) and name.startswith(RELATED_IMAGE_PREFIX):
            names.append(name)
    return names


class CsvPatcher:
    """Swaps the operator image in a CSV and leaves everything else untouched."""

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    def patch(self, csv_path, new_image: str):
        self.console.print(f"[blue]Patching CSV with custom operator image: {new_image}[/blue]")

        text = Path(csv_path).read_text(encoding="utf-8")
        round_trip = round_trip_yaml(text)
        try:
            csv = round_trip.load(text)
        except YAMLError as exc:
            raise CatalogBuilderError(f"Failed to read CSV '{csv_path}': {exc}") from exc
        if not isinstance(csv, dict):
            raise CatalogBuilderError(f"CSV '{csv_path}' is not a YAML mapping.")

        container = _operator_container(csv, csv_path)
        self.logger.info("  Current operator image: %s", container.get("image"))

        container["image"] = new_image
        metadata = csv.setdefault("metadata", CommentedMap())
        annotations = metadata.get("annotations")
        if not isinstance(annotations, dict):
            annotations = CommentedMap()
            metadata["annotations"] = annotations
        annotations["containerImage"] = new_image

        with open(csv_path, "w", encoding="utf-8", newline="") as file_obj:
            round_trip.dump(csv, file_obj)

        self.verify(csv_path, new_image)

    def verify(self, csv_path, expected_image: str):
        csv = load_csv(csv_path)
        patched_image = _operator_container(csv, csv_path).get("image")
        annotation = ((csv.get("metadata") or {}).get("annotations") or {}).get("containerImage")
        if patched_image != expected_image or annotation != expected_image:
            raise CatalogBuilderError(
                f"Patch verification failed. Expected: {expected_image}, "
                f"Got: {patched_image} (containerImage annotation: {annotation})"
            )
        self.console.print(f"[green]  Patched operator image: {patched_image}[/green]")
