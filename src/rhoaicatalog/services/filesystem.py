"""Filesystem helpers for the RHOAI catalog builder."""

import logging
import os
import shutil
import tempfile

from rich.console import Console


class FileSystemService:
    """Encapsulates temporary and generated directory side effects."""

    TEMP_PREFIX = "rhoai-catalog-builder."

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def make_temp_dir(self) -> str:
        path = tempfile.mkdtemp(prefix=self.TEMP_PREFIX)
        self.logger.info("Temp directory: %s", path)
        return path

    def cleanup_dir(self, path: str):
        if path and os.path.exists(path):
            try:
                shutil.rmtree(path)
                self.logger.debug("Removed directory: %s", path)
            except OSError as exc:
                message = f"Warning: Could not remove {path}: {exc}"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)
