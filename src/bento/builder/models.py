from enum import Enum
from typing import Any, Self

from attrs import define, field

UNKNOWN = "__unknown__"
CHECKSUM_TYPE = "sha256"
VMWARE_PROVIDER = "vmware_desktop"


def box_basename(name: str, version: str, git_revision: str) -> str:
    """Filename stem shared by every provider artifact of one build."""
    return f"{name.replace('/', '__')}-{version}.git.{git_revision}"


@define(frozen=True, slots=True)
class ProviderDescriptor:
    name: str
    file: str
    checksum: str
    checksum_type: str = field(default=CHECKSUM_TYPE)

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "file": self.file,
            "checksum_type": self.checksum_type,
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            name=data["name"],
            file=data["file"],
            checksum=data["checksum"],
            checksum_type=data.get("checksum_type", CHECKSUM_TYPE),
        )


@define(frozen=True, slots=True)
class BuildMetadata:
    name: str
    version: str
    build_timestamp: str
    git_revision: str
    template: str = field(default=UNKNOWN)
    box_basename: str = field(init=False)

    def __attrs_post_init__(self) -> None:
        object.__setattr__(
            self,
            "box_basename",
            box_basename(self.name, self.version, self.git_revision),
        )

    def to_dict(
        self, providers: list[ProviderDescriptor] | None = None
    ) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "build_timestamp": self.build_timestamp,
            "git_revision": self.git_revision,
            "box_basename": self.box_basename,
            "template": self.template,
            "providers": [p.to_dict() for p in providers or []],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        # box_basename is re-derived, never trusted from the file.
        return cls(
            name=data["name"],
            version=data["version"],
            build_timestamp=data["build_timestamp"],
            git_revision=data["git_revision"],
            template=data.get("template", UNKNOWN),
        )


@define(frozen=True, slots=True)
class UploadTicket:
    upload_path: str
    token: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self | None:
        """Returns None unless both fields are present strings."""
        upload_path, token = data.get("upload_path"), data.get("token")
        if not isinstance(upload_path, str) or not isinstance(token, str):
            return None
        return cls(upload_path=upload_path, token=token)


class VersionStatus(str, Enum):
    UNRELEASED = "unreleased"
    ACTIVE = "active"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | None) -> "VersionStatus":
        if raw == cls.UNRELEASED.value:
            return cls.UNRELEASED
        if raw == cls.ACTIVE.value:
            return cls.ACTIVE
        return cls.UNKNOWN


class Outcome(str, Enum):
    CREATED = "created"
    EXISTS = "exists"
    UPLOADED = "uploaded"
    TOKEN_MISMATCH = "token_mismatch"
    RELEASED = "released"
    ALREADY_RELEASED = "already_released"
    REVOKED = "revoked"
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    UNEXPECTED_STATUS = "unexpected_status"
    WARNING = "warning"


@define(slots=True)
class ProviderOutcome:
    name: str
    created: Outcome | None = None
    uploaded: Outcome | None = None
    mirror_url: str | None = None
    warnings: list[str] = field(factory=list)


@define(slots=True)
class PublishReport:
    box: str
    version: str
    box_created: bool = False
    version_created: Outcome | None = None
    providers: list[ProviderOutcome] = field(factory=list)
    warnings: list[str] = field(factory=list)

    @property
    def all_warnings(self) -> list[str]:
        collected = list(self.warnings)
        for provider in self.providers:
            collected.extend(f"{provider.name}: {w}" for w in provider.warnings)
        return collected

    @property
    def ok(self) -> bool:
        return not self.all_warnings


@define(frozen=True, slots=True)
class LifecycleResult:
    action: str
    box: str
    version: str
    outcome: Outcome
    status_code: int | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome not in (Outcome.WARNING, Outcome.UNEXPECTED_STATUS)
