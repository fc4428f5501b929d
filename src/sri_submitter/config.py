"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Validate types and constraints at startup

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated via env_nested_delimiter="__", so SRI__TEST__RECEPTION_URL
maps to sri.test.reception_url, TOOLCHAIN__OPENSSL_PATH to
toolchain.openssl_path, etc.

The endpoint URLs are turned into an immutable EndpointTable once
(`endpoint_table()`) and passed explicitly to the SOAP client.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sri_submitter.domain.models import EndpointPair, EndpointTable

_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_TEST_BASE = "https://celcer.sri.gob.ec/comprobantes-electronicos-ws"
_PRODUCTION_BASE = "https://cel.sri.gob.ec/comprobantes-electronicos-ws"


class EndpointSettings(BaseModel):
    """Reception and authorization web service URLs of one environment."""

    reception_url: str = Field(description="RecepcionComprobantesOffline endpoint")
    authorization_url: str = Field(description="AutorizacionComprobantesOffline endpoint")

    def to_pair(self) -> EndpointPair:
        return EndpointPair(
            reception_url=self.reception_url,
            authorization_url=self.authorization_url,
        )


class SriSettings(BaseModel):
    """
    Endpoints per environment. TEST and PRODUCTION must live on different
    hosts; a configuration that points both at the same host is rejected.
    """

    test: EndpointSettings = Field(
        default_factory=lambda: EndpointSettings(
            reception_url=f"{_TEST_BASE}/RecepcionComprobantesOffline?wsdl",
            authorization_url=f"{_TEST_BASE}/AutorizacionComprobantesOffline?wsdl",
        )
    )
    production: EndpointSettings = Field(
        default_factory=lambda: EndpointSettings(
            reception_url=f"{_PRODUCTION_BASE}/RecepcionComprobantesOffline?wsdl",
            authorization_url=f"{_PRODUCTION_BASE}/AutorizacionComprobantesOffline?wsdl",
        )
    )

    @model_validator(mode="after")
    def hosts_are_distinct(self) -> SriSettings:
        test_hosts = {urlsplit(self.test.reception_url).netloc, urlsplit(self.test.authorization_url).netloc}
        production_hosts = {
            urlsplit(self.production.reception_url).netloc,
            urlsplit(self.production.authorization_url).netloc,
        }
        if test_hosts & production_hosts:
            raise ValueError("Test and production endpoints must use different hosts")
        return self


class ToolchainSettings(BaseModel):
    """External `openssl` used to re-encode incompatible keystores."""

    openssl_path: str = Field(default="openssl", description="openssl executable")
    timeout_seconds: float = Field(default=30, gt=0)
    temp_dir: Path | None = Field(default=None, description="Scratch directory (system temp if unset)")
    legacy_cipher: str = Field(default="PBE-SHA1-3DES", description="-keypbe/-certpbe algorithm")
    decode_flags: list[str] = Field(
        default_factory=lambda: ["-legacy"],
        description="Extra flags for the decode step (enable legacy + modern PKCS#12 decoding)",
    )


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    sri: SriSettings = Field(default_factory=lambda: SriSettings())
    toolchain: ToolchainSettings = Field(default_factory=lambda: ToolchainSettings())

    poll_delay_seconds: float = Field(default=2.5, ge=0)
    http_timeout_seconds: float = Field(default=30, gt=0)
    authorization_poll_attempts: int = Field(default=5, ge=1)
    authorization_poll_interval_seconds: float = Field(default=3.0, ge=0)
    expose_diagnostics: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    def endpoint_table(self) -> EndpointTable:
        return EndpointTable(test=self.sri.test.to_pair(), production=self.sri.production.to_pair())
