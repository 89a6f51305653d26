"""
Service-account credential handling.

Parses the JSON credential blob and exchanges it for a short-lived bearer
token. Tokens are never cached; every transcription request re-authenticates.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict

import google.auth.exceptions
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from stt_relay.logging import get_logger

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

logger = get_logger("credentials")


class CredentialError(Exception):
    """Raised when credentials cannot be parsed or exchanged for a token."""


@dataclass(frozen=True)
class ServiceAccountCredentials:
    """Identity and signing key of a service account."""

    client_email: str
    private_key: str
    info: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def to_service_account_info(self) -> Dict[str, Any]:
        """Return the mapping google-auth expects, with a default token URI."""
        info = dict(self.info)
        info["client_email"] = self.client_email
        info["private_key"] = self.private_key
        info.setdefault("token_uri", GOOGLE_TOKEN_URI)
        return info


def parse_service_account(blob: str) -> ServiceAccountCredentials:
    """
    Parse a service-account JSON blob.

    Raises:
        CredentialError: If the blob is not a JSON object or lacks
            client_email/private_key.
    """
    try:
        data = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise CredentialError(f"Service credentials are not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CredentialError("Service credentials must be a JSON object")

    missing = [
        key
        for key in ("client_email", "private_key")
        if not isinstance(data.get(key), str) or not data[key].strip()
    ]
    if missing:
        raise CredentialError(
            f"Service credentials missing field(s): {', '.join(missing)}"
        )

    return ServiceAccountCredentials(
        client_email=data["client_email"],
        private_key=data["private_key"],
        info=data,
    )


class TokenProvider:
    """Abstract capability: exchange service-account credentials for a bearer token."""

    async def get_token(self, credentials: ServiceAccountCredentials) -> str:
        raise NotImplementedError


class GoogleServiceAccountTokenProvider(TokenProvider):
    """
    Token provider backed by google-auth.

    Signs a JWT assertion with the service-account key and trades it at the
    OAuth token endpoint. The google-auth refresh is blocking, so it runs in
    a worker thread.
    """

    def __init__(self, scope: str = CLOUD_PLATFORM_SCOPE):
        self.scope = scope

    def _fetch_token(self, credentials: ServiceAccountCredentials) -> str:
        try:
            signer = service_account.Credentials.from_service_account_info(
                credentials.to_service_account_info(),
                scopes=[self.scope],
            )
            signer.refresh(GoogleAuthRequest())
        except (google.auth.exceptions.GoogleAuthError, ValueError) as e:
            raise CredentialError(str(e) or type(e).__name__) from e

        if not signer.token:
            raise CredentialError("Token endpoint returned no access token")
        return signer.token

    async def get_token(self, credentials: ServiceAccountCredentials) -> str:
        logger.debug(f"Requesting access token for {credentials.client_email}")
        return await asyncio.to_thread(self._fetch_token, credentials)
