from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]
KeyMode = Literal["demo", "generated"]


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getint(name: str, default: str) -> int:
    raw = _getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    issuer_id: str
    key_mode: KeyMode
    issuer_port: int
    verifier_port: int
    issuer_url: str
    verifier_url: str
    issuer_public_key: Optional[str]

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    key_mode_raw = _getenv("KEY_MODE", "demo").lower()
    issuer_id = _getenv("ISSUER_ID", "DemoIssuer")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if key_mode_raw not in ("demo", "generated"):
        raise ValueError(f"KEY_MODE must be demo|generated (got {key_mode_raw!r})")

    # the demo seed is public; refuse to sign with it in prod
    if app_env_raw == "prod" and key_mode_raw == "demo":
        raise ValueError("KEY_MODE=demo is not allowed when APP_ENV=prod")

    if not issuer_id:
        raise ValueError("ISSUER_ID must not be empty")

    issuer_port = _getint("ISSUER_PORT", "5001")
    verifier_port = _getint("VERIFIER_PORT", "5002")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("1", "true", "yes"),
        issuer_id=issuer_id,
        key_mode=key_mode_raw,
        issuer_port=issuer_port,
        verifier_port=verifier_port,
        issuer_url=_getenv("ISSUER_URL", f"http://127.0.0.1:{issuer_port}"),
        verifier_url=_getenv("VERIFIER_URL", f"http://127.0.0.1:{verifier_port}"),
        issuer_public_key=_getenv("ISSUER_PUBLIC_KEY", "").lower() or None,
    )
