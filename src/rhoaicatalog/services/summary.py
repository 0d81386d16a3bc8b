"""Final run summary output."""

from typing import Any, Dict

import yaml
from rich.markup import escape


def catalog_source_manifest(image: str) -> Dict[str, Any]:
    return {
        "apiVersion": "operators.coreos.com/v1alpha1",
        "kind": "CatalogSource",
        "metadata": {
            "name": "rhoai-custom-catalog",
            "namespace": "openshift-marketplace",
        },
        "spec": {
            "sourceType": "grpc",
            "image": image,
            "displayName": "RHOAI Custom Catalog",
            "publisher": "Custom",
            "updateStrategy": {"registryPoll": {"interval": "10m"}},
        },
    }


class SummaryService:
    def __init__(self, console):
        self.console = console

    def print_summary(self, state):
        console = self.console
        console.print()
        console.print("=" * 38)
        console.print("[bold green]RHOAI Catalog Build Complete![/bold green]")
        console.print("=" * 38)
        console.print()
        console.print("Bundle Images:")
        for index, image in enumerate(state.resolved_images, start=1):
            kind = "hybrid" if image == state.hybrid_bundle_image else "production"
            console.print(f"  {index}. {escape(image)} ({kind})", highlight=False)

        if state.operator_image:
            console.print()
            console.print("Custom Operator Image:")
            console.print(f"  {escape(state.operator_image)}", highlight=False)

        console.print()
        console.print("Catalog Image:")
        console.print(f"  {escape(state.catalog_image or '')}", highlight=False)
        console.print()
        console.print("To use this catalog in OpenShift, create a CatalogSource:")
        console.print()
        manifest = yaml.safe_dump(catalog_source_manifest(state.catalog_image), sort_keys=False)
        console.print(escape(manifest), highlight=False)
