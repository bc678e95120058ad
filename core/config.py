from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0
DEFAULT_RESOURCE = "branch-rfc"
DEFAULT_SUGGEST_RESOURCE = "mastercoding"


@dataclass(frozen=True)
class ApiConfig:
    base_url: str = DEFAULT_BASE_URL
    auth_token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    resource: str = DEFAULT_RESOURCE
    suggest_resource: str = DEFAULT_SUGGEST_RESOURCE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ApiConfig":
        env = os.environ if environ is None else environ
        timeout = env.get("RFC_API_TIMEOUT", "")
        try:
            timeout_value = float(timeout) if timeout else DEFAULT_TIMEOUT
        except ValueError:
            timeout_value = DEFAULT_TIMEOUT
        values = {
            "base_url": (env.get("RFC_API_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            "auth_token": env.get("RFC_API_TOKEN") or None,
            "timeout": timeout_value,
            "resource": env.get("RFC_API_RESOURCE") or DEFAULT_RESOURCE,
        }
        values.update(overrides)
        return cls(**values)

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
