"""Reader for the on-disk metadata files written after a build."""

import json
from pathlib import Path

from ..exceptions import MetadataFileError
from ..models import BuildMetadata, ProviderDescriptor

METADATA_SUFFIX = ".metadata.json"


class MetadataFileReader:
    """Reads and interprets one `<box_basename>.metadata.json` file."""

    def __init__(self, metadata_path: Path) -> None:
        if not metadata_path.is_file():
            raise FileNotFoundError(f"Metadata file not found at: {metadata_path}")
        self.metadata_path = metadata_path
        self.metadata, self.providers = self._read()

    def _read(self) -> tuple[BuildMetadata, list[ProviderDescriptor]]:
        try:
            data = json.loads(self.metadata_path.read_text())
            metadata = BuildMetadata.from_dict(data)
            providers = [
                ProviderDescriptor.from_dict(p) for p in data.get("providers", [])
            ]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise MetadataFileError(
                f"Metadata file '{self.metadata_path}' is malformed: {e}"
            ) from e
        return metadata, providers

    def provider_map(self) -> dict[str, ProviderDescriptor]:
        return {p.name: p for p in self.providers}

    def get_info(self) -> str:
        """Returns a human-readable summary of the build."""
        m = self.metadata
        provider_lines = "".join(
            f"\n    - {p.name}: {p.file} ({p.checksum_type} {p.checksum[:12]}...)"
            for p in self.providers
        )
        return (
            f"Box {m.name} {m.version}\n"
            f"  Basename: {m.box_basename}\n"
            f"  Built: {m.build_timestamp}\n"
            f"  Git revision: {m.git_revision}\n"
            f"  Providers:{provider_lines or ' none'}"
        )


def find_metadata_files(builds_dir: Path) -> list[Path]:
    builds_dir = Path(builds_dir)
    if not builds_dir.is_dir():
        return []
    return sorted(builds_dir.glob(f"*{METADATA_SUFFIX}"))
