from __future__ import annotations

import logging
from pathlib import Path

import pytest

from mailinchat.config import Settings

ENV_KEYS = [
    "MAILINCHAT_HOME",
    "MAILINCHAT_LOG_DIR",
    "MAILINCHAT_WORKERS",
    "MAILINCHAT_FETCH_INTERVAL_SEC",
    "MAILINCHAT_MAX_MESSAGES",
    "MAILINCHAT_RPC_URL",
    "MAILINCHAT_ATTACHMENT_TTL_SEC",
    "MAILINCHAT_LOG_LEVEL",
    "GMAIL_SERVICE_ACCOUNT_PATH",
    "GMAIL_CLIENT_EMAIL",
    "GMAIL_PRIVATE_KEY",
    "GMAIL_DELEGATED_USER",
    "GMAIL_INBOX_LABEL",
    "REDIS_URL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):  # noqa: ANN001
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    root = tmp_path / "project"
    root.mkdir(parents=True, exist_ok=True)
    s = Settings.load(base_dir=root)
    s.ensure_directories()
    return s


@pytest.fixture()
def test_logger() -> logging.Logger:
    logger = logging.getLogger("mailinchat-test")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.INFO)
    return logger
