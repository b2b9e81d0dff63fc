"""Release, revoke and delete of a published box version."""

from pyvider.telemetry import logger

from .models import LifecycleResult, Outcome, VersionStatus
from .registry import RegistryClient
from .transport import HttpResponse


class ReleaseLifecycle:
    """
    Only `release` is gated on the version's current status. `revoke` and
    `delete` always issue their mutation and leave legality to the registry.
    """

    def __init__(self, registry: RegistryClient) -> None:
        self.registry = registry

    def status(self, box: str, version: str) -> tuple[VersionStatus, str | None]:
        response = self.registry.get_version(box, version)
        raw = None
        if response.status_code == 200:
            raw = response.json_object().get("status")
        return VersionStatus.parse(raw), raw

    def release(self, box: str, version: str) -> LifecycleResult:
        status, raw = self.status(box, version)
        if status is VersionStatus.ACTIVE:
            return _result(
                "release", box, version, Outcome.ALREADY_RELEASED,
                f"{box} {version} is already released",
            )
        if status is VersionStatus.UNKNOWN:
            return _result(
                "release", box, version, Outcome.UNEXPECTED_STATUS,
                f"{box} {version} has unexpected status {raw!r}",
            )

        response = self.registry.release_version(box, version)
        if response.status_code == 200:
            return _result(
                "release", box, version, Outcome.RELEASED,
                f"Released {box} {version}", response,
            )
        return _rejected("release", box, version, response)

    def revoke(self, box: str, version: str) -> LifecycleResult:
        response = self.registry.revoke_version(box, version)
        if response.status_code == 200:
            return _result(
                "revoke", box, version, Outcome.REVOKED,
                f"Revoked {box} {version}", response,
            )
        return _rejected("revoke", box, version, response)

    def delete(self, box: str, version: str) -> LifecycleResult:
        response = self.registry.delete_version(box, version)
        if response.status_code == 200:
            return _result(
                "delete", box, version, Outcome.DELETED,
                f"Deleted {box} {version}", response,
            )
        if response.status_code == 404:
            return _result(
                "delete", box, version, Outcome.NOT_FOUND,
                f"No box exists for this version: {box} {version}", response,
            )
        return _rejected("delete", box, version, response)


def _rejected(
    action: str, box: str, version: str, response: HttpResponse
) -> LifecycleResult:
    return _result(
        action, box, version, Outcome.WARNING,
        f"{action.capitalize()} of {box} {version} returned "
        f"{response.status_code}: {response.text}",
        response,
    )


def _result(
    action: str,
    box: str,
    version: str,
    outcome: Outcome,
    message: str,
    response: HttpResponse | None = None,
) -> LifecycleResult:
    result = LifecycleResult(
        action=action,
        box=box,
        version=version,
        outcome=outcome,
        status_code=response.status_code if response else None,
        message=message,
    )
    log = logger.info if result.ok else logger.warning
    log(message, action=action, outcome=outcome.value)
    return result
