from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import boto3
from botocore.exceptions import ClientError


ENV_USERNAME = "COUNTER_USERNAME"
ENV_PASSWORD = "COUNTER_PASSWORD"
ENV_PARAM_PREFIX = "PARAM_PREFIX"
ENV_BADGE_BASE_URL = "BADGE_BASE_URL"
ENV_BADGE_COLOR = "BADGE_COLOR"
ENV_LOG_LEVEL = "LOG_LEVEL"

# Backward-compatible fallbacks (legacy names)
FALLBACK_ENV_USERNAME = "USERNAME"
FALLBACK_ENV_PASSWORD = "PASSWORD"

DEFAULT_BADGE_BASE_URL = "https://img.shields.io"
DEFAULT_BADGE_COLOR = "green"


def getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.environ.get(name)
    return v if v not in (None, "") else default


def load_ssm_params(prefix: str, names: Iterable[str]) -> Dict[str, Optional[str]]:
    ssm = boto3.client("ssm")
    out: Dict[str, Optional[str]] = {k: None for k in names}
    for name in names:
        full = f"{prefix}{name}"
        try:
            resp = ssm.get_parameter(Name=full, WithDecryption=True)
        except ClientError as e:
            # Leave as None if parameter missing or access denied
            code = e.response.get("Error", {}).get("Code")
            if code in ("ParameterNotFound", "AccessDeniedException"):
                continue
            raise
        val = resp.get("Parameter", {}).get("Value")
        out[name] = val if isinstance(val, str) and val != "" else None
    return out


@dataclass(frozen=True)
class Config:
    """
    Read-only settings shared by every request handled in this process.

    Unset username/password are empty strings: authentication then requires
    an explicit empty-credential match (`":"`), never a bypass.
    """

    username: str = ""
    password: str = ""
    badge_base_url: str = DEFAULT_BADGE_BASE_URL
    badge_color: str = DEFAULT_BADGE_COLOR
    log_level: str = "INFO"

    @property
    def credentials(self) -> str:
        return f"{self.username}:{self.password}"

    @classmethod
    def from_env(cls) -> "Config":
        """
        Load configuration from the environment.

        - COUNTER_USERNAME / COUNTER_PASSWORD (fallbacks: USERNAME / PASSWORD)
        - PARAM_PREFIX: when set, SSM parameters `{prefix}username` and
          `{prefix}password` override the environment values if present.
        - BADGE_BASE_URL, BADGE_COLOR, LOG_LEVEL
        """
        username = getenv(ENV_USERNAME) or getenv(FALLBACK_ENV_USERNAME, "")
        password = getenv(ENV_PASSWORD) or getenv(FALLBACK_ENV_PASSWORD, "")

        prefix = getenv(ENV_PARAM_PREFIX)
        if prefix:
            params = load_ssm_params(prefix, ["username", "password"])
            username = params.get("username") or username
            password = params.get("password") or password

        return cls(
            username=username or "",
            password=password or "",
            badge_base_url=getenv(ENV_BADGE_BASE_URL, DEFAULT_BADGE_BASE_URL) or DEFAULT_BADGE_BASE_URL,
            badge_color=getenv(ENV_BADGE_COLOR, DEFAULT_BADGE_COLOR) or DEFAULT_BADGE_COLOR,
            log_level=getenv(ENV_LOG_LEVEL, "INFO") or "INFO",
        )
