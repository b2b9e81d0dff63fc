"""Thin client for the box registry's HTTP API."""

from pathlib import Path

from .config import BentoConfig
from .models import UploadTicket
from .transport import HttpResponse, Transport


class RegistryClient:
    """One method per registry endpoint; status-code policy belongs to callers."""

    def __init__(self, config: BentoConfig, transport: Transport) -> None:
        self.api_url = config.api_url.rstrip("/")
        self.org = config.org or ""
        self.token = config.token or ""
        self.transport = transport

    def _url(self, *segments: str) -> str:
        return "/".join([self.api_url, *segments])

    def _box(self, box: str) -> str:
        return self._url("box", self.org, box)

    def _version(self, box: str, version: str) -> str:
        return f"{self._box(box)}/version/{version}"

    def _provider(self, box: str, version: str, provider: str) -> str:
        return f"{self._version(box, version)}/provider/{provider}"

    def _call(
        self, method: str, url: str, data: dict[str, str] | None = None
    ) -> HttpResponse:
        return self.transport.request(
            method, url, params={"access_token": self.token}, data=data
        )

    def get_box(self, box: str) -> HttpResponse:
        return self._call("GET", self._box(box))

    def create_box(self, box: str, private: bool) -> HttpResponse:
        return self._call(
            "POST",
            self._url("boxes"),
            data={
                "box[name]": box,
                "box[username]": self.org,
                "box[is_private]": str(private).lower(),
            },
        )

    def make_public(self, box: str) -> HttpResponse:
        return self._call("PUT", self._box(box), data={"box[is_private]": "false"})

    def create_version(
        self, box: str, version: str, description: str = ""
    ) -> HttpResponse:
        return self._call(
            "POST",
            f"{self._box(box)}/versions",
            data={"version[version]": version, "version[description]": description},
        )

    def get_version(self, box: str, version: str) -> HttpResponse:
        return self._call("GET", self._version(box, version))

    def release_version(self, box: str, version: str) -> HttpResponse:
        return self._call("PUT", f"{self._version(box, version)}/release")

    def revoke_version(self, box: str, version: str) -> HttpResponse:
        return self._call("PUT", f"{self._version(box, version)}/revoke")

    def delete_version(self, box: str, version: str) -> HttpResponse:
        return self._call("DELETE", self._version(box, version))

    def create_provider(self, box: str, version: str, provider: str) -> HttpResponse:
        return self._call(
            "POST",
            f"{self._version(box, version)}/providers",
            data={"provider[name]": provider},
        )

    def get_upload_ticket(self, box: str, version: str, provider: str) -> HttpResponse:
        return self._call("GET", f"{self._provider(box, version, provider)}/upload")

    def upload(self, ticket: UploadTicket, artifact: Path) -> HttpResponse:
        return self.transport.request("PUT", ticket.upload_path, data=artifact)

    def get_provider(self, box: str, version: str, provider: str) -> HttpResponse:
        return self._call("GET", self._provider(box, version, provider))
