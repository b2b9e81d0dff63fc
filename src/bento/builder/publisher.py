"""
Idempotent publication of a build's box files to the registry and the
public mirror.

Each run walks the same fixed sequence: ensure box, ensure version, ensure
providers, upload and verify, mirror. The first three steps tolerate the
entity already existing, the last two overwrite, so re-running `publish`
with the same inputs is the recovery path after a partial failure.
Transport failures propagate and abort the run; every other anomaly is
logged and recorded on the returned `PublishReport`.
"""

from collections.abc import Mapping
from pathlib import Path

from pyvider.telemetry import logger

from .blobstore import S3BlobStore, mirror_key
from .models import (
    BuildMetadata,
    Outcome,
    ProviderDescriptor,
    ProviderOutcome,
    PublishReport,
    UploadTicket,
)
from .registry import RegistryClient
from .transport import HttpResponse

PRIVATE_OS_MARKERS = ("macos", "windows", "sles", "solaris", "rhel")
IDEMPOTENT_CODES = {200: Outcome.CREATED, 422: Outcome.EXISTS}


def is_private_box(box: str) -> bool:
    return any(marker in box for marker in PRIVATE_OS_MARKERS)


def registry_box_name(name: str) -> str:
    """The registry scopes boxes by org, so any `org/` prefix is dropped."""
    return name.rsplit("/", 1)[-1]


def _unexpected(label: str, response: HttpResponse) -> str:
    return f"{label} returned {response.status_code}: {response.text}"


class RegistryPublisher:
    def __init__(
        self,
        registry: RegistryClient,
        blob_store: S3BlobStore,
        artifacts_dir: Path,
    ) -> None:
        self.registry = registry
        self.blob_store = blob_store
        self.artifacts_dir = Path(artifacts_dir)

    def ensure_box(self, box: str, report: PublishReport) -> None:
        response = self.registry.get_box(box)
        if response.status_code == 200:
            logger.debug("Box already exists", box=box)
            return
        if response.status_code != 404:
            self._warn(report, _unexpected("Box lookup", response))
            return

        private = is_private_box(box)
        logger.info("Creating box", box=box, private=private)
        created = self.registry.create_box(box, private=private)
        if created.status_code != 200:
            self._warn(report, _unexpected("Box create", created))
            return
        report.box_created = True
        if not private:
            public = self.registry.make_public(box)
            if public.status_code != 200:
                self._warn(report, _unexpected("Making box public", public))

    def ensure_version(
        self, metadata: BuildMetadata, report: PublishReport
    ) -> Outcome:
        response = self.registry.create_version(
            report.box,
            metadata.version,
            description=(
                f"Template {metadata.template}, git revision {metadata.git_revision}"
            ),
        )
        outcome = IDEMPOTENT_CODES.get(response.status_code, Outcome.WARNING)
        if outcome is Outcome.WARNING:
            self._warn(report, _unexpected("Version create", response))
        else:
            logger.info(
                "Version ready",
                box=report.box,
                version=metadata.version,
                outcome=outcome.value,
            )
        report.version_created = outcome
        return outcome

    def ensure_provider(
        self, box: str, version: str, result: ProviderOutcome
    ) -> Outcome:
        response = self.registry.create_provider(box, version, result.name)
        outcome = IDEMPOTENT_CODES.get(response.status_code, Outcome.WARNING)
        if outcome is Outcome.WARNING:
            self._warn_provider(result, _unexpected("Provider create", response))
        result.created = outcome
        return outcome

    def upload(
        self,
        box: str,
        version: str,
        descriptor: ProviderDescriptor,
        result: ProviderOutcome,
    ) -> Outcome:
        artifact = self.artifacts_dir / descriptor.file
        ticket_response = self.registry.get_upload_ticket(box, version, result.name)
        ticket = None
        if ticket_response.status_code == 200:
            ticket = UploadTicket.from_dict(ticket_response.json_object())
        if ticket is None:
            self._warn_provider(
                result, _unexpected("Upload ticket request", ticket_response)
            )
            result.uploaded = Outcome.WARNING
            return result.uploaded

        logger.info(
            "Uploading artifact", box=box, provider=result.name, file=descriptor.file
        )
        uploaded = self.registry.upload(ticket, artifact)
        if uploaded.status_code not in (200, 201, 204):
            self._warn_provider(result, _unexpected("Upload", uploaded))

        hosted = self.registry.get_provider(box, version, result.name)
        hosted_token = None
        if hosted.status_code == 200:
            hosted_token = hosted.json_object().get("hosted_token")
        if hosted_token != ticket.token:
            self._warn_provider(
                result,
                f"Uploaded token does not match hosted token "
                f"(status {hosted.status_code}): {hosted.text}",
            )
            result.uploaded = Outcome.TOKEN_MISMATCH
        else:
            result.uploaded = Outcome.UPLOADED
        return result.uploaded

    def mirror(
        self, box: str, descriptor: ProviderDescriptor, result: ProviderOutcome
    ) -> str:
        key = mirror_key(result.name, box)
        artifact = self.artifacts_dir / descriptor.file
        result.mirror_url = self.blob_store.upload(key, artifact)
        return result.mirror_url

    def publish(
        self,
        metadata: BuildMetadata,
        providers: Mapping[str, ProviderDescriptor],
    ) -> PublishReport:
        box = registry_box_name(metadata.name)
        report = PublishReport(box=box, version=metadata.version)
        results = {name: ProviderOutcome(name=name) for name in providers}
        report.providers.extend(results.values())

        self.ensure_box(box, report)
        self.ensure_version(metadata, report)
        for name in providers:
            self.ensure_provider(box, metadata.version, results[name])
        for name, descriptor in providers.items():
            self.upload(box, metadata.version, descriptor, results[name])
        for name, descriptor in providers.items():
            self.mirror(box, descriptor, results[name])

        logger.info(
            "Publish finished",
            box=box,
            version=metadata.version,
            warnings=len(report.all_warnings),
        )
        return report

    @staticmethod
    def _warn(report: PublishReport, message: str) -> None:
        logger.warning(message, box=report.box, version=report.version)
        report.warnings.append(message)

    @staticmethod
    def _warn_provider(result: ProviderOutcome, message: str) -> None:
        logger.warning(message, provider=result.name)
        result.warnings.append(message)
