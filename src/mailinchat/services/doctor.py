from __future__ import annotations

import platform
import sys

from mailinchat.config import Settings


def _check(name: str, passed: bool, detail: str, severity: str = "warn") -> dict[str, str]:
    return {"check": name, "status": "ok" if passed else severity, "detail": detail}


def _gmail_checks(settings: Settings) -> list[dict[str, str]]:
    account = settings.service_account
    if account is not None:
        return [
            _check(
                "gmail_service_account",
                bool(account.delegated_user),
                f"{account.client_email} as {account.delegated_user or 'no delegated user'}",
            )
        ]
    return [
        _check(
            "gmail_oauth_client_secret",
            settings.gmail_client_secret_path.exists(),
            str(settings.gmail_client_secret_path),
        ),
        _check(
            "gmail_oauth_token",
            settings.gmail_token_path.exists(),
            f"{settings.gmail_token_path} (run `mailinchat auth` to create it)",
        ),
    ]


def _redis_check(redis_url: str | None) -> dict[str, str]:
    if not redis_url:
        return _check("redis", False, "REDIS_URL is not set, attachments are cached in memory")
    try:
        from redis import Redis

        Redis.from_url(redis_url, socket_connect_timeout=3).ping()
    except Exception as exc:  # noqa: BLE001
        return _check("redis", False, f"{exc.__class__.__name__}: {exc}")
    return _check("redis", True, redis_url)


def run_doctor_checks(settings: Settings) -> list[dict[str, str]]:
    checks = [
        _check("python_version", sys.version_info >= (3, 11), platform.python_version()),
        _check("logs_dir", settings.logs_dir.exists(), str(settings.logs_dir)),
    ]
    checks.extend(_gmail_checks(settings))
    checks.append(
        _check(
            "rpc_url",
            bool(settings.rpc_url),
            settings.rpc_url or "MAILINCHAT_RPC_URL is not set",
            severity="fail",
        )
    )
    checks.append(_redis_check(settings.redis_url))
    return checks
