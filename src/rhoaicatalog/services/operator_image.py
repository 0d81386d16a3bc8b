"""Custom operator image provisioning for hybrid bundles."""

from typing import List, Optional

from rhoaicatalog.constants import OPERATOR_REPOSITORY


def operator_image_tag(branch: str) -> str:
    return f"custom-{branch.replace('/', '-')}"


class OperatorImageService:
    """Verifies a pre-built operator image or builds one from a git branch."""

    def __init__(self, runner, git_service, logger, console, repo_dir: str):
        self.runner = runner
        self.git = git_service
        self.logger = logger
        self.console = console
        self.repo_dir = repo_dir

    def build_command(self, image: str, image_builder: str) -> List[str]:
        return [
            "make",
            "image-build",
            "ODH_PLATFORM_TYPE=rhoai",
            f"IMG={image}",
            "CGO_ENABLED=0",
            "USE_LOCAL=true",
            f"IMAGE_BUILDER={image_builder}",
        ]

    def push_command(self, image: str, image_builder: str) -> List[str]:
        return ["make", "image-push", f"IMG={image}", f"IMAGE_BUILDER={image_builder}"]

    def verify_prebuilt(self, image: str, image_builder: str) -> bool:
        for cmd in (
            [image_builder, "manifest", "inspect", image],
            [image_builder, "image", "inspect", image],
        ):
            result = self.runner.run(cmd, check=False, capture_output=True)
            if result.returncode == 0:
                return True
        return False

    def provide(self, config, state) -> Optional[str]:
        """Resolves the operator image to inject into the hybrid bundle.

        Records the image (and any stash pushed while switching branches) on
        ``state`` so the finalizer can restore the repository on every exit path.
        """
        if config.no_build:
            self.logger.info("Skipping operator build (--no-build)")
            return None

        if config.operator_image:
            self.console.print(f"[blue]Using pre-built operator image: {config.operator_image}[/blue]")
            if not self.runner.dry_run:
                if self.verify_prebuilt(config.operator_image, config.image_builder):
                    self.console.print(f"[green]Operator image verified: {config.operator_image}[/green]")
                else:
                    message = (
                        f"Could not verify operator image: {config.operator_image} "
                        "(may still work if pushable)"
                    )
                    self.console.print(f"[yellow]{message}[/yellow]")
                    self.logger.warning(message)
            state.operator_image = config.operator_image
            return state.operator_image

        branch = state.target_branch or state.original_branch
        if not branch:
            branch = self.git.current_branch() or "current"
        image = f"{config.registry}/{OPERATOR_REPOSITORY}:{operator_image_tag(branch)}"

        self.console.print(f"[blue]Building operator from branch: {branch}[/blue]")
        self.logger.info("Operator image will be: %s", image)

        switch_branch = bool(state.original_branch) and branch != state.original_branch
        if switch_branch:
            if self.git.has_local_changes():
                self.console.print("[yellow]Working directory has uncommitted changes, stashing them temporarily...[/yellow]")
                state.stashed_changes = self.git.stash_push()
                if state.stashed_changes:
                    self.console.print("[green]Changes stashed (will be restored at the end)[/green]")
            self.git.checkout(branch)

        self.runner.execute(self.build_command(image, config.image_builder), cwd=self.repo_dir)
        self.runner.execute(self.push_command(image, config.image_builder), cwd=self.repo_dir)

        if switch_branch:
            self.git.checkout(state.original_branch)

        state.operator_image = image
        self.console.print(f"[green]Operator image built and pushed: {image}[/green]")
        return image
