"""opm render/validate wrappers."""

import json
from typing import Any, Dict, List, Optional, Tuple

from rhoaicatalog.constants import SCHEMA_BUNDLE
from rhoaicatalog.errors import CatalogBuilderError


def parse_json_stream(text: str) -> List[Dict[str, Any]]:
    """Parses concatenated JSON documents as emitted by ``opm render``."""
    decoder = json.JSONDecoder()
    documents = []
    index = 0
    length = len(text)

    while index < length:
        while index < length and text[index].isspace():
            index += 1
        if index >= length:
            break
        try:
            document, index = decoder.raw_decode(text, index)
        except json.JSONDecodeError as exc:
            raise CatalogBuilderError(f"Invalid opm render output: {exc}") from exc
        if isinstance(document, dict):
            documents.append(document)

    return documents


def documents_with_schema(documents: List[Dict[str, Any]], schema: str) -> List[Dict[str, Any]]:
    return [document for document in documents if document.get("schema") == schema]


def bundle_name(documents: List[Dict[str, Any]]) -> Optional[str]:
    for document in documents_with_schema(documents, SCHEMA_BUNDLE):
        name = document.get("name")
        if isinstance(name, str) and name and name != "null":
            return name
    return None


class OpmService:
    """Runs opm and parses its output."""

    def __init__(self, runner, logger, opm_bin: str = "opm"):
        self.runner = runner
        self.logger = logger
        self.opm_bin = opm_bin

    def render(self, image: str) -> Tuple[str, List[Dict[str, Any]]]:
        result = self.runner.run([self.opm_bin, "render", image], capture_output=True)
        output = result.stdout or ""
        return output, parse_json_stream(output)

    def validate(self, catalog_dir: str, cwd: Optional[str] = None):
        """Returns the completed process; callers decide how to report a failure."""
        return self.runner.run(
            [self.opm_bin, "validate", catalog_dir],
            check=False,
            capture_output=True,
            cwd=cwd,
        )
