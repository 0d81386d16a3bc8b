"""Actionable error catalog for the RHOAI catalog builder."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "bundle_pull_failed": {
        "what": "Failed to create container from {image}.",
        "next": "Make sure you can pull it: `{builder} pull {image}`.",
    },
    "bundle_copy_failed": {
        "what": "Failed to extract {path} from {image}.",
        "next": "Check that {image} is an OLM bundle image containing {path}.",
    },
    "csv_not_found": {
        "what": "No ClusterServiceVersion found in {path}.",
        "next": "Use a bundle image whose manifests include a `*clusterserviceversion.yaml`.",
    },
    "render_failed": {
        "what": "Failed to render {image} with opm.",
        "next": "Make sure the image is accessible: `{builder} pull {image}`.",
    },
    "bundle_name_missing": {
        "what": "Failed to extract the bundle name from {image}.",
        "next": "Check that `opm render {image}` emits an `olm.bundle` document.",
    },
    "catalog_validation_failed": {
        "what": "Catalog validation failed.",
        "next": "Inspect the catalog content logged above and the opm output.",
    },
    "stash_failed": {
        "what": "Failed to stash local changes.",
        "next": "Commit or stash your changes manually and retry.",
    },
    "not_repo_root": {
        "what": "This command must be run from the opendatahub-operator repository root.",
        "next": "Change into the repository directory containing `Makefile` and `get_all_manifests.sh`.",
    },
    "command_not_found": {
        "what": "Required command not found: {command}.",
        "next": "Install `{command}` and make sure it is on your PATH.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
