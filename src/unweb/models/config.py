"""Pydantic configuration models for unweb."""

from ipaddress import IPv4Network
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_USER_AGENT = "unweb/1.0 (HTML to Markdown Converter)"
DEV_ORIGIN = "http://localhost:5173"


class ByteSize(int):
    """
    Custom type that parses human-readable byte sizes.

    Accepts:
        - Integers (bytes)
        - Strings like '200kb', '5mb', '1gb'

    Examples:
        >>> ByteSize._parse('200kb')
        204800
        >>> ByteSize._parse('10mb')
        10485760
        >>> ByteSize._parse(1024)
        1024
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(cls._parse)

    @classmethod
    def _parse(cls, v: Any) -> int:
        if isinstance(v, bool):
            raise ValueError(f"Invalid byte size: {v}")
        if isinstance(v, int):
            if v < 0:
                raise ValueError(f"Byte size must not be negative: {v}")
            return v
        if isinstance(v, str):
            v = v.lower().strip()
            # Order matters: check longer suffixes first
            units = [("gb", 1024**3), ("mb", 1024**2), ("kb", 1024), ("b", 1)]
            for unit, mult in units:
                if v.endswith(unit):
                    num_str = v[: -len(unit)].strip()
                    try:
                        return int(float(num_str) * mult)
                    except ValueError as err:
                        raise ValueError(f"Invalid number in byte size: {v}") from err
            try:
                return int(v)
            except ValueError:
                pass
        raise ValueError(f"Invalid byte size: {v}. Use format like '200kb', '5mb', or integer bytes.")


class FetchPolicy(BaseModel):
    """
    Process-wide limits for remote fetches and uploads.

    Read-only once constructed; the fetcher, URL guard and server all
    receive the same instance at startup.
    """

    max_content_bytes: ByteSize = Field(10 * 1024 * 1024, description="Maximum remote document size")
    max_upload_bytes: ByteSize = Field(5 * 1024 * 1024, description="Maximum uploaded file size")
    request_timeout: float = Field(60.0, gt=0, description="Total fetch budget in seconds")
    allowed_schemes: frozenset[str] = Field(
        frozenset({"http", "https"}),
        description="URL schemes accepted by the URL guard",
    )
    blocked_hosts: frozenset[str] = Field(
        frozenset({"localhost", "127.0.0.1", "0.0.0.0"}),
        description="Host names rejected outright",
    )
    blocked_networks: tuple[IPv4Network, ...] = Field(
        (
            IPv4Network("10.0.0.0/8"),
            IPv4Network("172.16.0.0/12"),
            IPv4Network("192.168.0.0/16"),
            IPv4Network("127.0.0.0/8"),
        ),
        description="IPv4 ranges rejected when the host is a literal address",
    )
    user_agent: str = Field(DEFAULT_USER_AGENT, description="User-Agent header sent on fetch")
    max_redirects: int = Field(5, ge=0, description="Redirect hops followed (each one re-validated)")

    model_config = {"extra": "forbid", "frozen": True}


class ServerConfig(BaseModel):
    """Configuration for the HTTP API."""

    host: str = Field("127.0.0.1", description="Interface to bind")
    port: int = Field(8080, ge=1, le=65535, description="Port to bind")
    development: bool = Field(False, description="Restrict CORS to the local front-end dev server")
    allowed_origins: Optional[list[str]] = Field(
        None,
        description="CORS origins (default: dev origin in development, '*' otherwise)",
    )

    model_config = {"extra": "forbid"}

    def cors_origins(self) -> list[str]:
        """Origins the CORS middleware should accept."""
        if self.allowed_origins is not None:
            return list(self.allowed_origins)
        return [DEV_ORIGIN] if self.development else ["*"]


class UnwebConfig(BaseModel):
    """
    Root configuration model for unweb.

    YAML format:
        fetch:
          max_content_bytes: 10mb
          request_timeout: 60
        server:
          port: 8080
        log_level: INFO
    """

    fetch: FetchPolicy = Field(default_factory=FetchPolicy)
    server: ServerConfig = Field(default_factory=ServerConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        data = self.model_dump(mode="json", exclude_none=True)
        # frozensets dump in arbitrary order
        data["fetch"]["allowed_schemes"] = sorted(data["fetch"]["allowed_schemes"])
        data["fetch"]["blocked_hosts"] = sorted(data["fetch"]["blocked_hosts"])
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "UnwebConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "UnwebConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())
