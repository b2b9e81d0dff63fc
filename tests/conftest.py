"""Pytest fixtures for the entire bento-builder test suite."""

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from bento.builder.config import BentoConfig
from bento.builder.metadata import GitRepository
from bento.builder.registry import RegistryClient
from bento.builder.transport import HttpResponse

API_URL = "https://registry.test/api/v1"
REVISION = "abcd1234"


class FakeGit(GitRepository):
    """A git repository with a fixed HEAD and working-tree state."""

    def __init__(self, sha: str = REVISION, clean: bool = True) -> None:
        super().__init__()
        self.sha = sha
        self.clean = clean

    def head_revision(self) -> str:
        return self.sha

    def is_clean(self) -> bool:
        return self.clean


class StubTransport:
    """
    Serves canned responses keyed by (method, path). Paths are relative to the
    registry API root; absolute URLs outside it are keyed verbatim. A list of
    responses is consumed in order, the last one repeating.
    """

    def __init__(self, routes: dict[tuple[str, str], Any] | None = None) -> None:
        self.routes: dict[tuple[str, str], list[HttpResponse]] = {}
        self.calls: list[tuple[str, str, dict[str, str] | None, Any]] = []
        for key, value in (routes or {}).items():
            self.add(*key, value)

    def add(self, method: str, path: str, responses: Any) -> None:
        if not isinstance(responses, list):
            responses = [responses]
        self.routes[(method, path)] = list(responses)

    def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        data: Any = None,
    ) -> HttpResponse:
        path = url[len(API_URL) :] if url.startswith(API_URL) else url
        self.calls.append((method, path, params, data))
        queue = self.routes.get((method, path))
        if not queue:
            raise AssertionError(f"no stub response for {method} {path}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    def methods_for(self, path: str) -> list[str]:
        return [method for method, p, _, _ in self.calls if p == path]

    @property
    def mutating_calls(self) -> list[tuple[str, str]]:
        return [(m, p) for m, p, _, _ in self.calls if m != "GET"]


class StubS3Client:
    def __init__(self, error: Exception | None = None) -> None:
        self.uploads: list[tuple[str, str, str, dict[str, str]]] = []
        self.error = error

    def upload_file(
        self, filename: str, bucket: str, key: str, ExtraArgs: dict[str, str]
    ) -> None:
        if self.error:
            raise self.error
        self.uploads.append((filename, bucket, key, ExtraArgs))


def json_response(status_code: int, body: Any = None) -> HttpResponse:
    return HttpResponse(status_code=status_code, text=json.dumps(body or {}))


@pytest.fixture
def config(tmp_path: Path) -> BentoConfig:
    return BentoConfig(
        org="bento",
        token="secret-token",
        api_url=API_URL,
        s3_endpoint="https://s3.test",
        s3_bucket="boxes",
        templates_dir=tmp_path / "templates",
        builds_dir=tmp_path / "builds",
    )


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def registry(config: BentoConfig, transport: StubTransport) -> RegistryClient:
    return RegistryClient(config, transport)


@pytest.fixture
def s3_client() -> StubS3Client:
    return StubS3Client()


@pytest.fixture
def make_template(config: BentoConfig) -> Callable[..., Path]:
    """A factory fixture writing a template and an optional override file."""

    def _make(
        template: str,
        variables: dict[str, Any],
        overrides: dict[str, Any] | None = None,
    ) -> Path:
        path = config.templates_dir / f"{template}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"variables": variables, "builders": []}))
        if overrides is not None:
            override_path = config.templates_dir / f"{template}.variables.json"
            override_path.write_text(json.dumps(overrides))
        return path

    return _make


@pytest.fixture
def make_box_file(config: BentoConfig) -> Callable[[str, str, bytes], Path]:
    def _make(basename: str, provider: str, content: bytes = b"box") -> Path:
        config.builds_dir.mkdir(parents=True, exist_ok=True)
        path = config.builds_dir / f"{basename}.{provider}.box"
        path.write_bytes(content)
        return path

    return _make
