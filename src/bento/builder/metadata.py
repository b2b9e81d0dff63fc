"""Derivation of a build's canonical identity."""

from datetime import datetime, timezone
import json
from pathlib import Path
import subprocess
from typing import Any

from pyvider.telemetry import logger

from .exceptions import ConfigError, GitError
from .models import UNKNOWN, BuildMetadata

DEFAULT_VERSION = f"{UNKNOWN}.TIMESTAMP"
DIRTY_SUFFIX = "_dirty"


def build_timestamp(now: datetime | None = None) -> str:
    """Formats a UTC instant as YYYYMMDDHHMMSS."""
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y%m%d%H%M%S")


def _load_json_object(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        raise ConfigError(f"Could not parse '{path}': {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in '{path}'.")
    return data


class TemplateSource:
    """Reads template variables and their optional per-template overrides."""

    def __init__(self, templates_dir: Path) -> None:
        self.templates_dir = Path(templates_dir)

    def template_path(self, template: str) -> Path:
        return self.templates_dir / f"{template}.json"

    def override_path(self, template: str) -> Path:
        return self.templates_dir / f"{template}.variables.json"

    def variables(self, template: str) -> dict[str, Any]:
        path = self.template_path(template)
        variables = _load_json_object(path).get("variables")
        if not isinstance(variables, dict):
            raise ConfigError(f"Template '{path}' has no 'variables' object.")
        return variables

    def overrides(self, template: str) -> dict[str, Any]:
        path = self.override_path(template)
        if not path.exists():
            return {}
        return _load_json_object(path)

    def merged_variables(self, template: str) -> dict[str, Any]:
        # Shallow merge; override values win.
        return {**self.variables(template), **self.overrides(template)}


class GitRepository:
    def __init__(self, path: Path | str | None = None) -> None:
        self.path = path

    def _git(self, *args: str) -> str:
        command = ["git", *args]
        try:
            result = subprocess.run(
                command, capture_output=True, text=True, cwd=self.path, check=False
            )
        except OSError as e:
            raise GitError(f"Could not run git: {e}") from e
        if result.returncode != 0:
            raise GitError(
                f"Command failed with exit code {result.returncode}.\n"
                f"  Command: {' '.join(command)}\n"
                f"  Stderr:\n{result.stderr.strip()}"
            )
        return result.stdout.strip()

    def head_revision(self) -> str:
        revision = self._git("rev-parse", "HEAD")
        if not revision:
            raise GitError("git rev-parse returned no revision.")
        return revision

    def is_clean(self) -> bool:
        return self._git("status", "--porcelain") == ""

    def revision(self) -> str:
        sha = self.head_revision()
        return sha if self.is_clean() else f"{sha}{DIRTY_SUFFIX}"


class MetadataComputer:
    def __init__(self, source: TemplateSource, git: GitRepository) -> None:
        self.source = source
        self.git = git

    @staticmethod
    def derive_version(
        declared: str, timestamp: str, override_version: str | None = None
    ) -> str:
        if override_version:
            return override_version
        head, _, _ = declared.rpartition(".")
        return f"{head}.{timestamp}"

    def compute(
        self,
        template: str,
        build_timestamp: str,
        override_version: str | None = None,
    ) -> BuildMetadata:
        merged = self.source.merged_variables(template)
        name = str(merged.get("name", template))
        version = self.derive_version(
            str(merged.get("version", DEFAULT_VERSION)),
            build_timestamp,
            override_version,
        )
        metadata = BuildMetadata(
            name=name,
            version=version,
            build_timestamp=build_timestamp,
            git_revision=self.git.revision(),
            template=str(merged.get("template", UNKNOWN)),
        )
        logger.debug(
            "Computed build metadata",
            template=template,
            box_basename=metadata.box_basename,
        )
        return metadata
