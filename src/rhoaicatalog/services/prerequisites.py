"""Prerequisite checks for the RHOAI catalog builder."""

import os
import shutil
from typing import Callable, Dict, List, Optional

from rhoaicatalog.constants import REPO_MARKER_FILES
from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.errors_catalog import actionable_error


def registry_domain(registry: str) -> str:
    return registry.split("/", 1)[0]


class PrerequisiteService:
    """Verifies tools, working directory and registry access before a run."""

    REPORT_TOOLS = ("podman", "git", "opm")

    def __init__(self, runner, logger, console, repo_dir: str, which: Callable = shutil.which):
        self.runner = runner
        self.logger = logger
        self.console = console
        self.repo_dir = repo_dir
        self.which = which

    def check_commands(self, commands: List[str]):
        for command in commands:
            if not self.which(command):
                raise CatalogBuilderError(actionable_error("command_not_found", command=command))

    def check_repo_root(self):
        for marker in REPO_MARKER_FILES:
            if not os.path.isfile(os.path.join(self.repo_dir, marker)):
                raise CatalogBuilderError(actionable_error("not_repo_root"))

    def detect_opm(self) -> str:
        local_opm = os.path.join(self.repo_dir, "bin", "opm")
        if os.path.isfile(local_opm):
            return local_opm
        if self.which("opm"):
            return "opm"

        self.logger.info("opm not found, downloading...")
        self.runner.execute(["make", "opm"], cwd=self.repo_dir)
        return local_opm

    def is_logged_in(self, image_builder: str, domain: str) -> bool:
        result = self.runner.run(
            [image_builder, "login", "--get-login", domain],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def check_registry_login(self, image_builder: str, registry: str):
        domain = registry_domain(registry)
        if not self.is_logged_in(image_builder, domain):
            message = (
                f"May not be logged into {domain}. "
                f"If push fails, run: {image_builder} login {domain}"
            )
            self.console.print(f"[yellow]{message}[/yellow]")
            self.logger.warning(message)

    def tool_version(self, tool: str) -> Optional[str]:
        cmd = [tool, "version"] if tool == "opm" else [tool, "--version"]
        result = self.runner.run(cmd, check=False, capture_output=True)
        output = (result.stdout or result.stderr or "").strip()
        if not output:
            return None
        return output.splitlines()[0]

    def report(self, domain: str = "quay.io") -> Dict[str, Optional[str]]:
        """Prints presence and version of each tool. Returns tool -> version (None if missing)."""
        found: Dict[str, Optional[str]] = {}
        for tool in self.REPORT_TOOLS:
            if not self.which(tool):
                self.console.print(f"[red]✗ {tool}: NOT FOUND[/red]")
                found[tool] = None
                continue
            version = self.tool_version(tool) or "version unknown"
            self.console.print(f"[green]✓ {tool}:[/green] {version}")
            found[tool] = version

        if found.get("podman"):
            result = self.runner.run(
                ["podman", "login", "--get-login", domain],
                check=False,
                capture_output=True,
            )
            if result.returncode == 0:
                user = (result.stdout or "").strip() or "unknown"
                self.console.print(f"[green]✓ Logged into {domain} as: {user}[/green]")
            else:
                self.console.print(f"[yellow]⚠ Not logged into {domain}. Run: podman login {domain}[/yellow]")

        return found
