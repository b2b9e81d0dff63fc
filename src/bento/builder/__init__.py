# bento-builder/src/bento/builder/__init__.py
"""
This package contains the core logic for building Vagrant base boxes and
publishing them to a box registry and a public blob-store mirror.
"""

from .config import BentoConfig
from .lifecycle import ReleaseLifecycle
from .metadata import MetadataComputer
from .models import BuildMetadata, ProviderDescriptor, PublishReport
from .providers import ProviderScanner
from .publisher import RegistryPublisher

__all__ = [
    "BentoConfig",
    "BuildMetadata",
    "MetadataComputer",
    "ProviderDescriptor",
    "ProviderScanner",
    "PublishReport",
    "RegistryPublisher",
    "ReleaseLifecycle",
]
