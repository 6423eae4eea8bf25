from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ATTACHMENT_RETENTION_SEC = 7 * 24 * 60 * 60


@dataclass(slots=True)
class ServiceAccountConfig:
    client_email: str
    private_key: str
    delegated_user: str | None = None
    token_uri: str = "https://oauth2.googleapis.com/token"

    def to_info(self) -> dict[str, str]:
        return {
            "type": "service_account",
            "client_email": self.client_email,
            "private_key": self.private_key,
            "token_uri": self.token_uri,
        }


@dataclass(slots=True)
class Settings:
    root_dir: Path
    logs_dir: Path
    gmail_client_secret_path: Path
    gmail_token_path: Path
    service_account: ServiceAccountConfig | None = None
    inbox_label: str = "INBOX"
    max_messages: int = 100
    fetch_interval_sec: float = 30.0
    workers: int = 4
    rpc_url: str | None = None
    rpc_timeout_sec: float = 10.0
    redis_url: str | None = None
    attachment_ttl_sec: int = ATTACHMENT_RETENTION_SEC
    log_level: str = "INFO"

    @classmethod
    def load(cls, base_dir: Path | None = None) -> Settings:
        load_dotenv(override=False)

        root_env = os.getenv("MAILINCHAT_HOME")
        root_dir = Path(root_env).expanduser().resolve() if root_env else (base_dir or Path.cwd()).resolve()
        logs_dir = Path(os.getenv("MAILINCHAT_LOG_DIR", root_dir / "logs")).expanduser().resolve()

        gmail_client_secret_path = Path(
            os.getenv("GMAIL_OAUTH_CLIENT_SECRET_PATH", root_dir / "secrets" / "gmail_client_secret.json")
        ).expanduser().resolve()
        gmail_token_path = Path(
            os.getenv("GMAIL_OAUTH_TOKEN_PATH", root_dir / "secrets" / "gmail_token.json")
        ).expanduser().resolve()

        workers = int(os.getenv("MAILINCHAT_WORKERS", "4"))
        if workers < 1:
            raise ValueError(f"MAILINCHAT_WORKERS must be positive, got {workers}")
        fetch_interval_sec = float(os.getenv("MAILINCHAT_FETCH_INTERVAL_SEC", "30"))
        if fetch_interval_sec <= 0:
            raise ValueError(f"MAILINCHAT_FETCH_INTERVAL_SEC must be positive, got {fetch_interval_sec}")

        return cls(
            root_dir=root_dir,
            logs_dir=logs_dir,
            gmail_client_secret_path=gmail_client_secret_path,
            gmail_token_path=gmail_token_path,
            service_account=cls._load_service_account(),
            inbox_label=os.getenv("GMAIL_INBOX_LABEL", "INBOX"),
            max_messages=int(os.getenv("MAILINCHAT_MAX_MESSAGES", "100")),
            fetch_interval_sec=fetch_interval_sec,
            workers=workers,
            rpc_url=os.getenv("MAILINCHAT_RPC_URL") or None,
            rpc_timeout_sec=float(os.getenv("MAILINCHAT_RPC_TIMEOUT_SEC", "10")),
            redis_url=os.getenv("REDIS_URL") or None,
            attachment_ttl_sec=int(os.getenv("MAILINCHAT_ATTACHMENT_TTL_SEC", str(ATTACHMENT_RETENTION_SEC))),
            log_level=os.getenv("MAILINCHAT_LOG_LEVEL", "INFO"),
        )

    @staticmethod
    def _load_service_account() -> ServiceAccountConfig | None:
        """
        Service account for domain-wide delegation.
        Either a JSON key file (GMAIL_SERVICE_ACCOUNT_PATH) or the
        GMAIL_CLIENT_EMAIL / GMAIL_PRIVATE_KEY pair.
        """
        delegated_user = os.getenv("GMAIL_DELEGATED_USER") or None

        key_path = os.getenv("GMAIL_SERVICE_ACCOUNT_PATH")
        if key_path:
            path = Path(key_path).expanduser().resolve()
            with path.open("r", encoding="utf-8-sig") as fh:
                info = json.load(fh)
            return ServiceAccountConfig(
                client_email=info["client_email"],
                private_key=info["private_key"],
                delegated_user=delegated_user,
                token_uri=info.get("token_uri", "https://oauth2.googleapis.com/token"),
            )

        client_email = os.getenv("GMAIL_CLIENT_EMAIL")
        private_key = os.getenv("GMAIL_PRIVATE_KEY")
        if not client_email or not private_key:
            return None
        return ServiceAccountConfig(
            client_email=client_email,
            # .env files usually keep the PEM on one line
            private_key=private_key.replace("\\n", "\n"),
            delegated_user=delegated_user,
        )

    def ensure_directories(self) -> None:
        for path in [self.root_dir, self.logs_dir]:
            path.mkdir(parents=True, exist_ok=True)
        self.gmail_token_path.parent.mkdir(parents=True, exist_ok=True)
