import logging
import os
import shutil
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from .errors import CatalogBuilderError
from .models import RunConfig, RunState
from .services.bundle_resolver import resolve_bundles
from .services.catalog import CatalogAssembler
from .services.cleanup import CleanupService
from .services.command_runner import CommandRunner, build_runner
from .services.filesystem import FileSystemService
from .services.git import GitService
from .services.hybrid_bundle import HybridBundleService
from .services.opm import OpmService
from .services.operator_image import OperatorImageService
from .services.prerequisites import PrerequisiteService
from .services.summary import SummaryService
from .services.verifier import CatalogVerifier

console = Console()
logger = logging.getLogger("rhoaicatalog")


class CatalogBuilder:
    """Builds, pushes and verifies an OLM catalog for operator upgrade testing."""

    def __init__(
        self,
        config: RunConfig,
        repo_dir: Optional[str] = None,
        runner: Optional[CommandRunner] = None,
        which: Callable = shutil.which,
    ):
        self.config = config
        self.repo_dir = repo_dir or os.getcwd()
        self.state = RunState()

        self.runner = runner or build_runner(config.dry_run, logger=logger, console=console)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.git_service = GitService(
            runner=self.runner,
            logger=logger,
            console=console,
            repo_dir=self.repo_dir,
        )
        self.prerequisite_service = PrerequisiteService(
            runner=self.runner,
            logger=logger,
            console=console,
            repo_dir=self.repo_dir,
            which=which,
        )
        self.operator_image_service = OperatorImageService(
            runner=self.runner,
            git_service=self.git_service,
            logger=logger,
            console=console,
            repo_dir=self.repo_dir,
        )
        self.opm_service = OpmService(runner=self.runner, logger=logger)
        self.catalog_assembler = CatalogAssembler(
            runner=self.runner,
            opm_service=self.opm_service,
            logger=logger,
            console=console,
            image_builder=config.image_builder,
            repo_dir=self.repo_dir,
        )
        self.verifier = CatalogVerifier(
            runner=self.runner,
            opm_service=self.opm_service,
            logger=logger,
            console=console,
        )
        self.cleanup_service = CleanupService(
            git_service=self.git_service,
            filesystem_service=self.filesystem_service,
            logger=logger,
            console=console,
            repo_dir=self.repo_dir,
            dry_run=config.dry_run,
        )
        self.summary_service = SummaryService(console=console)

    def log_configuration(self):
        config = self.config
        logger.info("Configuration:")
        logger.info("  Bundles: %s", " ".join(config.bundles))
        logger.info("  Registry: %s", config.registry)
        logger.info("  Catalog Tag: %s", config.catalog_tag)
        logger.info("  Mode: %s", config.mode)
        if config.operator_image:
            logger.info("  Operator Image: %s", config.operator_image)
        elif config.builds_operator:
            logger.info("  Branch: %s", config.branch or "current")
        logger.info("  Image Builder: %s", config.image_builder)
        logger.info("  Dry Run: %s", config.dry_run)

    def check_prerequisites(self):
        logger.info("Checking prerequisites...")
        self.prerequisite_service.check_commands([self.config.image_builder, "git"])
        self.prerequisite_service.check_repo_root()

        original_branch = self.git_service.current_branch()
        if not original_branch:
            raise CatalogBuilderError(
                f"Could not determine the current git branch in {self.repo_dir}."
            )
        self.state.original_branch = original_branch
        self.state.target_branch = self.config.branch or original_branch
        logger.info("Current branch: %s", original_branch)

        self.state.temp_dir = self.filesystem_service.make_temp_dir()

        if not self.config.dry_run:
            self.prerequisite_service.check_registry_login(
                self.config.image_builder, self.config.registry
            )

        self.state.opm_bin = self.prerequisite_service.detect_opm()
        self.opm_service.opm_bin = self.state.opm_bin
        logger.info("Using opm at: %s", self.state.opm_bin)
        console.print("[green]All prerequisites met[/green]")

    def hybridize(self, source_image: str) -> str:
        service = HybridBundleService(
            runner=self.runner,
            logger=logger,
            console=console,
            image_builder=self.config.image_builder,
            work_dir=self.state.temp_dir,
        )
        self.state.hybrid_bundle_image = service.hybridize(
            source_image, self.state.operator_image, self.config.registry
        )
        return self.state.hybrid_bundle_image

    def resolve_bundle_images(self):
        self.state.resolved_images = resolve_bundles(
            self.config.bundles,
            no_build=self.config.no_build,
            hybridize=self.hybridize,
        )
        logger.info("Resolved bundle images:")
        for image in self.state.resolved_images:
            logger.info("  - %s", image)

    def cleanup(self):
        self.cleanup_service.cleanup(self.state)

    def run(self) -> int:
        exit_code = 1
        self.cleanup_service.install_signal_handlers()

        try:
            console.print("[bold blue]RHOAI Catalog Builder[/bold blue]")
            self.log_configuration()
            self.check_prerequisites()

            self.operator_image_service.provide(self.config, self.state)
            self.resolve_bundle_images()

            self.state.catalog_image = self.catalog_assembler.assemble(
                self.state.resolved_images,
                registry=self.config.registry,
                tag=self.config.catalog_tag,
            )
            self.verifier.verify(self.state.catalog_image, len(self.state.resolved_images))
            self.summary_service.print_summary(self.state)

            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled.[/bold red]")
            logger.info("Operation cancelled")
            exit_code = 1
            return exit_code
        except CatalogBuilderError as exc:
            console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
            logger.error(str(exc))
            exit_code = 1
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(exc))}")
            logger.exception("Unexpected error")
            exit_code = 1
            return exit_code
        finally:
            self.cleanup()
            self.cleanup_service.restore_signal_handlers()
