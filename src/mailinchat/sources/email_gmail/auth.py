from __future__ import annotations

import json
from pathlib import Path

from mailinchat.config import ServiceAccountConfig

SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.modify",
]


class GmailAuthManager:
    def __init__(
        self,
        client_secret_path: Path,
        token_path: Path,
        service_account: ServiceAccountConfig | None = None,
    ):
        self.client_secret_path = client_secret_path
        self.token_path = token_path
        self.service_account = service_account

    @property
    def is_configured(self) -> bool:
        return (
            self.service_account is not None
            or self.client_secret_path.exists()
            or self.token_path.exists()
        )

    def _service_account_credentials(self):
        from google.auth.transport.requests import Request
        from google.oauth2 import service_account

        config = self.service_account
        creds = service_account.Credentials.from_service_account_info(
            config.to_info(),
            scopes=SCOPES,
            subject=config.delegated_user,
        )
        creds.refresh(Request())
        return creds

    def ensure_credentials(self):
        if self.service_account is not None:
            return self._service_account_credentials()

        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials
        from google_auth_oauthlib.flow import InstalledAppFlow

        creds = None
        if self.token_path.exists():
            try:
                creds = Credentials.from_authorized_user_file(str(self.token_path), SCOPES)
            except (ValueError, json.JSONDecodeError):
                # broken token file, run the flow again
                creds = None

        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())

        if not creds or not creds.valid:
            if not self.client_secret_path.exists():
                raise FileNotFoundError(f"OAuth client secret not found: {self.client_secret_path}")
            try:
                with self.client_secret_path.open("r", encoding="utf-8-sig") as fh:
                    client_config = json.load(fh)
            except json.JSONDecodeError as exc:
                raise ValueError("Invalid OAuth client JSON, download it again") from exc

            flow = InstalledAppFlow.from_client_config(client_config, SCOPES)
            creds = flow.run_local_server(port=0)

        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(creds.to_json(), encoding="utf-8")
        return creds
