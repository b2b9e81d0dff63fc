"""Discovery and checksumming of per-provider box files."""

from pathlib import Path

from pyvider.telemetry import logger

from .crypto import sha256_file
from .models import VMWARE_PROVIDER, ProviderDescriptor

BOX_SUFFIX = ".box"


def normalize_provider(raw: str) -> str:
    """Collapses every vmware flavour onto the registry's single provider name."""
    if "vmware" in raw.lower():
        return VMWARE_PROVIDER
    return raw


def provider_from_filename(filename: str, box_basename: str) -> str | None:
    prefix = f"{box_basename}."
    if not filename.startswith(prefix) or not filename.endswith(BOX_SUFFIX):
        return None
    raw = filename[len(prefix) : -len(BOX_SUFFIX)]
    return raw or None


class ProviderScanner:
    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def scan(self, box_basename: str) -> list[ProviderDescriptor]:
        if not self.output_dir.is_dir():
            return []

        descriptors = []
        # Sorted so metadata output is stable between runs.
        for path in sorted(self.output_dir.iterdir()):
            raw = provider_from_filename(path.name, box_basename)
            if raw is None or not path.is_file():
                continue
            descriptor = ProviderDescriptor(
                name=normalize_provider(raw),
                file=path.name,
                checksum=sha256_file(path),
            )
            logger.debug(
                "Found provider artifact",
                provider=descriptor.name,
                file=descriptor.file,
            )
            descriptors.append(descriptor)
        return descriptors
