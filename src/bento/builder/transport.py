"""HTTP transport used by every registry operation."""

from contextlib import ExitStack
import json
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import urljoin

from attrs import define, field
import requests
from pyvider.telemetry import logger

from .config import DEFAULT_MAX_REDIRECTS
from .exceptions import TooManyRedirects, TransportError

RequestBody = bytes | dict[str, Any] | Path | None


@define(frozen=True, slots=True)
class HttpResponse:
    status_code: int
    text: str = ""
    headers: dict[str, str] = field(factory=dict)

    def json(self) -> Any:
        try:
            return json.loads(self.text) if self.text else {}
        except ValueError as e:
            raise TransportError(
                f"Response body is not JSON (status {self.status_code}): {self.text[:200]}"
            ) from e

    def json_object(self) -> dict[str, Any]:
        """The body as a JSON object, or `{}` when it is not one."""
        try:
            body = self.json()
        except TransportError:
            logger.debug("Ignoring non-JSON body", status_code=self.status_code)
            return {}
        return body if isinstance(body, dict) else {}

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400 and "location" in self.headers


class Transport(Protocol):
    def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        data: RequestBody = None,
    ) -> HttpResponse: ...


class RequestsTransport:
    """
    Sends requests through a `requests.Session`, following redirects itself
    so each hop reissues the same method and body.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        timeout: float | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self.max_redirects = max_redirects
        self.timeout = timeout

    def _send(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None,
        data: RequestBody,
    ) -> HttpResponse:
        with ExitStack() as stack:
            body: Any = data
            if isinstance(data, Path):
                body = stack.enter_context(data.open("rb"))
            try:
                response = self._session.request(
                    method,
                    url,
                    params=params,
                    data=body,
                    allow_redirects=False,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                raise TransportError(f"{method} {url} failed: {e}") from e
        return HttpResponse(
            status_code=response.status_code,
            text=response.text,
            headers={k.lower(): v for k, v in response.headers.items()},
        )

    def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        data: RequestBody = None,
    ) -> HttpResponse:
        hops = 0
        while True:
            response = self._send(method, url, params, data)
            if not response.is_redirect:
                return response
            hops += 1
            if hops > self.max_redirects:
                raise TooManyRedirects(
                    f"{method} {url} exceeded {self.max_redirects} redirects."
                )
            url = urljoin(url, response.headers["location"])
            logger.debug("Following redirect", method=method, location=url, hop=hops)
