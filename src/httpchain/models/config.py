"""Pydantic configuration models for httpchain requests."""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..exceptions import ConfigurationError
from .request import ResponseFormat, normalize_method


def _expand_env_var(value: Optional[str]) -> Optional[str]:
    """Expand environment variable references in a string.

    Supports $VAR and ${VAR} syntax. Returns original value if
    the env var is not set.
    """
    if value is None:
        return None

    # Match $VAR or ${VAR}
    pattern = r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)"

    def replace(match: re.Match) -> str:
        var_name = match.group(1) or match.group(2)
        return os.environ.get(var_name, match.group(0))

    return re.sub(pattern, replace, value)


class AuthConfig(BaseModel):
    """Authorization header built as ``{type} {credentials}``.

    Credentials support $VAR / ${VAR} environment expansion.
    """

    type: str = Field(..., alias="Type", description="Auth scheme (Bearer, Token, ...)")
    credentials: str = Field(..., alias="Credentials", description="Scheme credentials")

    model_config = {"extra": "forbid", "populate_by_name": True}

    def model_post_init(self, __context: object) -> None:
        """Expand environment variables in credentials."""
        object.__setattr__(self, "credentials", _expand_env_var(self.credentials))


class BasicAuthConfig(BaseModel):
    """HTTP Basic credentials. The password supports environment expansion."""

    username: str = Field(..., alias="Username")
    password: str = Field(..., alias="Password")

    model_config = {"extra": "forbid", "populate_by_name": True}

    def model_post_init(self, __context: object) -> None:
        """Expand environment variables in the password."""
        object.__setattr__(self, "password", _expand_env_var(self.password))


class RequestConfig(BaseModel):
    """
    Typed configuration record for a single request.

    Keys use the capitalized names (``Method``, ``URL``, ``JsonBody`` ...);
    the snake_case field names are accepted too. Unknown keys are rejected.

    Example:
        config = RequestConfig.from_mapping({
            "Method": "POST",
            "URL": "https://api.example.com/items",
            "JsonBody": {"name": "widget"},
            "Retry": 2,
        })

    YAML format:
        Method: GET
        URL: https://api.example.com/items
        Header:
          Accept: application/json
        Retry: 3
        RetryDelay: 500
    """

    method: str = Field("GET", alias="Method", description="HTTP method")
    url: str = Field("", alias="URL", description="Request URL")
    header: Optional[dict[str, Any]] = Field(None, alias="Header", description="Headers to append")
    body: Any = Field(None, alias="Body", description="Raw body; mappings and lists are form-encoded")
    json_body: Any = Field(None, alias="JsonBody", description="Value serialized as a JSON body")
    form_data: Optional[dict[str, Any]] = Field(None, alias="FormData", description="Form-encoded body")
    cookie: Optional[dict[str, Any]] = Field(None, alias="Cookie", description="Cookies to send")
    auth: Optional[AuthConfig] = Field(None, alias="Auth")
    basic_auth: Optional[BasicAuthConfig] = Field(None, alias="BasicAuth")
    timeout: Optional[float] = Field(None, ge=0, alias="Timeout", description="Timeout in milliseconds")
    follow_redirects: Optional[bool] = Field(None, alias="FollowRedirects")
    max_redirects: Optional[int] = Field(None, ge=0, alias="MaxRedirects")
    verify_ssl: Optional[bool] = Field(None, alias="VerifySSL")
    user_agent: Optional[str] = Field(None, alias="UserAgent")
    proxy: Optional[str] = Field(None, alias="Proxy")
    retry: Optional[int] = Field(None, alias="Retry", description="Retries beyond the first attempt")
    retry_delay: Optional[int] = Field(None, alias="RetryDelay", description="Delay between retries (ms)")
    response_format: Optional[ResponseFormat] = Field(None, alias="ResponseFormat")
    fail_on_http_error: Optional[bool] = Field(
        None,
        alias="FailOnHttpError",
        description="Treat status >= 400 as a failed, retryable attempt",
    )

    model_config = {"extra": "forbid", "populate_by_name": True}

    @field_validator("method", mode="before")
    @classmethod
    def check_method(cls, v: Any) -> str:
        return normalize_method(v)

    @field_validator("response_format", mode="before")
    @classmethod
    def check_format(cls, v: Any) -> Optional[ResponseFormat]:
        if v is None:
            return None
        return ResponseFormat.parse(v)

    @model_validator(mode="after")
    def check_dependent_keys(self) -> "RequestConfig":
        if self.max_redirects is not None and self.follow_redirects is None:
            raise ValueError("MaxRedirects requires FollowRedirects")
        if self.retry_delay is not None and self.retry is None:
            raise ValueError("RetryDelay requires Retry")
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RequestConfig":
        """Validate a plain mapping, raising ConfigurationError on bad input."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as err:
            raise ConfigurationError(f"Invalid request configuration: {err}") from err

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(
            self.model_dump(mode="json", by_alias=True, exclude_none=True),
            default_flow_style=False,
            sort_keys=False,
        )

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "RequestConfig":
        """Load config from YAML string."""
        import yaml

        try:
            data = yaml.safe_load(yaml_str) or {}
        except yaml.YAMLError as err:
            raise ConfigurationError(f"Invalid YAML request configuration: {err}") from err
        if not isinstance(data, Mapping):
            raise ConfigurationError("YAML request configuration must be a mapping")
        return cls.from_mapping(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "RequestConfig":
        """Load config from YAML file."""
        return cls.from_yaml(Path(path).read_text())
