"""Process-wide configuration, resolved once from the environment."""

from collections.abc import Mapping
import os
from pathlib import Path
from typing import Self

from attrs import define, field

from .exceptions import ConfigError

DEFAULT_API_URL = "https://atlas.hashicorp.com/api/v1"
DEFAULT_S3_ENDPOINT = "https://s3.amazonaws.com"
DEFAULT_S3_BUCKET = "opscode-vm-bento"
DEFAULT_MAX_REDIRECTS = 5


@define(frozen=True, slots=True)
class BentoConfig:
    org: str | None = None
    token: str | None = None
    api_url: str = field(default=DEFAULT_API_URL)
    s3_endpoint: str = field(default=DEFAULT_S3_ENDPOINT)
    s3_bucket: str = field(default=DEFAULT_S3_BUCKET)
    templates_dir: Path = field(default=Path("templates"), converter=Path)
    builds_dir: Path = field(default=Path("builds"), converter=Path)
    max_redirects: int = field(default=DEFAULT_MAX_REDIRECTS)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Self:
        env = os.environ if environ is None else environ
        return cls(
            org=env.get("ATLAS_ORG") or None,
            token=env.get("ATLAS_TOKEN") or None,
            api_url=env.get("ATLAS_API", DEFAULT_API_URL).rstrip("/"),
            s3_endpoint=env.get("BENTO_S3_ENDPOINT", DEFAULT_S3_ENDPOINT),
            s3_bucket=env.get("BENTO_S3_BUCKET", DEFAULT_S3_BUCKET),
            templates_dir=env.get("BENTO_TEMPLATES_DIR", "templates"),
            builds_dir=env.get("BENTO_BUILDS_DIR", "builds"),
        )

    def require_registry_credentials(self) -> None:
        missing = [
            var
            for var, value in (("ATLAS_ORG", self.org), ("ATLAS_TOKEN", self.token))
            if not value
        ]
        if missing:
            raise ConfigError(
                f"Missing registry configuration: set {', '.join(missing)}."
            )
