"""Core logic for building boxes by orchestrating the packer CLI."""

import json
from pathlib import Path
import shutil
import subprocess

from pyvider.telemetry import logger

from ..exceptions import BuildError
from ..metadata import MetadataComputer
from ..models import BuildMetadata
from ..providers import ProviderScanner
from .reader import METADATA_SUFFIX


class BuildOrchestrator:
    PACKER = "packer"

    def __init__(
        self,
        computer: MetadataComputer,
        templates_dir: Path,
        builds_dir: Path,
        template: str,
        build_timestamp: str,
        override_version: str | None = None,
        only: str | None = None,
        except_: str | None = None,
        mirror: str | None = None,
        headless: bool = False,
        dry_run: bool = False,
    ) -> None:
        self.computer = computer
        self.templates_dir = Path(templates_dir)
        self.builds_dir = Path(builds_dir)
        self.template = template
        self.build_timestamp = build_timestamp
        self.override_version = override_version
        self.only = only
        self.except_ = except_
        self.mirror = mirror
        self.headless = headless
        self.dry_run = dry_run

    def packer_command(self, metadata: BuildMetadata) -> list[str]:
        template_path = self.templates_dir / f"{self.template}.json"
        cmd = [self.PACKER, "build"]
        for key, value in (
            ("box_basename", metadata.box_basename),
            ("build_timestamp", metadata.build_timestamp),
            ("git_revision", metadata.git_revision),
            ("version", metadata.version),
        ):
            cmd.extend(["-var", f"{key}={value}"])
        if self.mirror:
            cmd.extend(["-var", f"mirror={self.mirror}"])
        if self.headless:
            cmd.extend(["-var", "headless=true"])
        if self.only:
            cmd.append(f"-only={self.only}")
        if self.except_:
            cmd.append(f"-except={self.except_}")
        cmd.append(template_path.name)
        return cmd

    def _run_subprocess(self, command: list[str], cwd: Path) -> None:
        logger.info(f"Running command: {' '.join(command)}")
        if shutil.which(command[0]) is None:
            raise BuildError(f"'{command[0]}' not found in PATH.", returncode=127)
        result = subprocess.run(command, cwd=cwd, check=False)
        if result.returncode != 0:
            raise BuildError(
                f"Command failed with exit code {result.returncode}.\n"
                f"  Command: {' '.join(command)}",
                returncode=result.returncode,
            )

    def metadata_path(self, metadata: BuildMetadata) -> Path:
        return self.builds_dir / f"{metadata.box_basename}{METADATA_SUFFIX}"

    def write_metadata(self, metadata: BuildMetadata) -> Path:
        providers = ProviderScanner(self.builds_dir).scan(metadata.box_basename)
        if not providers:
            logger.warning(
                "No box files found for build", box_basename=metadata.box_basename
            )
        path = self.metadata_path(metadata)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(metadata.to_dict(providers), indent=2) + "\n")
        logger.info("Wrote metadata file", path=str(path), providers=len(providers))
        return path

    def build_package(self) -> tuple[BuildMetadata, Path | None]:
        logger.info("Orchestrator starting build", template=self.template)
        metadata = self.computer.compute(
            self.template, self.build_timestamp, self.override_version
        )
        command = self.packer_command(metadata)
        if self.dry_run:
            logger.info(f"Dry run, not executing: {' '.join(command)}")
            return metadata, None

        template_dir = (self.templates_dir / self.template).parent
        self._run_subprocess(command, cwd=template_dir)
        return metadata, self.write_metadata(metadata)
