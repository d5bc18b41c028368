"""
Google OAuth 2.0 authentication using the installed-app (local redirect) flow.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import keyring
from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from keyring.errors import KeyringError, PasswordDeleteError
from oauthlib.oauth2.rfc6749.errors import OAuth2Error
from rich.console import Console

from ..domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

console = Console(stderr=True)


KEYRING_SERVICE_NAME = "freecal"

AUTH_TIMEOUT_SECONDS = 300

SUCCESS_MESSAGE = (
    "Authentication successful! You can close this window and return to the terminal."
)


class GoogleAuthenticator:
    """
    Handles authentication with the Google Calendar API.

    Flow used for CLI applications:
    1. Reuse a cached token (OS keyring, falling back to a token file)
    2. Refresh it silently if it expired and has a refresh token
    3. Otherwise start a local callback server on a random port
    4. Open the consent page in the browser
    5. Receive the authorization code and exchange it for a token
    """

    # Required scopes for calendar access
    SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]

    def __init__(
        self,
        credentials_path: Path,
        token_path: Path,
        use_keyring: bool = True,
    ):
        """
        Initialize the authenticator.

        Args:
            credentials_path: OAuth client secrets (credentials.json)
            token_path: File used to cache the token when keyring is unavailable
            use_keyring: Store the token in the OS keyring when possible
        """
        self.credentials_path = Path(credentials_path)
        self.token_path = Path(token_path)
        self._key_identifier = str(self.token_path.expanduser().resolve())
        self._keyring_supported = use_keyring
        self._cache_backend = "keyring" if use_keyring else "file"
        self._insecure_storage_warning: Optional[str] = None
        if not use_keyring:
            self._set_insecure_storage_warning(
                f"Keyring storage disabled; using plaintext token file {self.token_path}."
            )

    @property
    def cache_backend(self) -> str:
        """Return the active cache backend (keyring or file)."""
        return self._cache_backend

    @property
    def insecure_storage_warning(self) -> Optional[str]:
        """Provide a warning message when the token falls back to plaintext storage."""
        return self._insecure_storage_warning

    def _load_credentials(self) -> Optional[Credentials]:
        """Load cached credentials from keyring or disk if they exist."""
        serialized = self._load_token_from_keyring()
        if serialized is None:
            serialized = self._load_token_from_file()

        if not serialized:
            return None

        try:
            return Credentials.from_authorized_user_info(json.loads(serialized), self.SCOPES)
        except ValueError as exc:
            logger.warning("Could not deserialize cached token: %s", exc)
            return None

    def _load_token_from_keyring(self) -> Optional[str]:
        if not self._keyring_supported:
            return None

        try:
            return keyring.get_password(KEYRING_SERVICE_NAME, self._key_identifier)
        except KeyringError as exc:
            self._handle_keyring_failure(f"reading credentials failed: {exc}")
            return None

    def _load_token_from_file(self) -> Optional[str]:
        if self.token_path.exists():
            try:
                with open(self.token_path, "r", encoding="utf-8") as file_handle:
                    return file_handle.read()
            except OSError as exc:
                logger.warning("Could not load token file %s: %s", self.token_path, exc)
        return None

    def _save_credentials(self, credentials: Credentials) -> None:
        """Save credentials to the configured backend."""
        serialized = credentials.to_json()

        if self._keyring_supported and self._save_token_to_keyring(serialized):
            return

        self._save_token_to_file(serialized)

    def _save_token_to_keyring(self, serialized: str) -> bool:
        try:
            keyring.set_password(
                KEYRING_SERVICE_NAME,
                self._key_identifier,
                serialized,
            )
            self._cache_backend = "keyring"
            return True
        except KeyringError as exc:  # pragma: no cover - environment dependent
            self._handle_keyring_failure(f"writing credentials failed: {exc}")
            return False

    def _save_token_to_file(self, serialized: str) -> None:
        try:
            self.token_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.token_path, "w", encoding="utf-8") as file_handle:
                file_handle.write(serialized)
            self.token_path.chmod(0o600)
        except OSError as exc:
            logger.warning("failed to save token to %s: %s", self.token_path, exc)

    def _handle_keyring_failure(self, reason: str) -> None:
        if self._keyring_supported:
            logger.warning(
                "Secure credential storage unavailable (%s). Falling back to plaintext token file.",
                reason,
            )
        self._keyring_supported = False
        self._cache_backend = "file"
        self._set_insecure_storage_warning(
            f"Secure credential storage unavailable ({reason}). "
            f"Falling back to plaintext token file at {self.token_path}."
        )

    def _set_insecure_storage_warning(self, message: str) -> None:
        if self._insecure_storage_warning:
            return
        self._insecure_storage_warning = message

    def get_credentials(self, force_refresh: bool = False) -> Credentials:
        """
        Get valid credentials, using the cache or requesting new ones.

        Args:
            force_refresh: Force the browser flow even if a cached token exists

        Returns:
            Google OAuth credentials

        Raises:
            AuthenticationError: If authentication fails
        """
        credentials = None if force_refresh else self._load_credentials()

        if credentials is not None and credentials.valid:
            return credentials

        if credentials is not None and credentials.expired and credentials.refresh_token:
            try:
                credentials.refresh(Request())
            except RefreshError as exc:
                logger.warning("Token refresh failed, starting new authorization: %s", exc)
            except GoogleAuthError as exc:
                raise AuthenticationError(f"unable to refresh token: {exc}") from exc
            else:
                self._save_credentials(credentials)
                return credentials

        # Need to authenticate interactively
        credentials = self._authenticate_local_server()
        self._save_credentials(credentials)
        return credentials

    def get_access_token(self, force_refresh: bool = False) -> str:
        """Return a valid bearer token string."""
        return self.get_credentials(force_refresh=force_refresh).token

    def _authenticate_local_server(self) -> Credentials:
        """
        Perform the installed-app flow with a local redirect server.

        Returns:
            Google OAuth credentials

        Raises:
            AuthenticationError: If authentication fails
        """
        if not self.credentials_path.exists():
            raise AuthenticationError(
                f"unable to read credentials: {self.credentials_path} does not exist"
            )

        console.print("\n[bold cyan]🔐 Google Authentication Required[/bold cyan]")
        console.print("Opening browser for authentication...")
        console.print("[dim]If the browser doesn't open automatically, use the URL printed below.[/dim]\n")

        try:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self.credentials_path),
                scopes=self.SCOPES,
            )
        except (OSError, ValueError) as exc:
            raise AuthenticationError(f"unable to parse credentials: {exc}") from exc

        try:
            credentials = flow.run_local_server(
                host="localhost",
                port=0,
                open_browser=True,
                timeout_seconds=AUTH_TIMEOUT_SECONDS,
                success_message=SUCCESS_MESSAGE,
            )
        except (GoogleAuthError, OAuth2Error, OSError, ValueError) as exc:
            raise AuthenticationError(f"unable to retrieve token: {exc}") from exc
        except AttributeError as exc:
            # run_local_server returns no callback URI when the timeout expires
            raise AuthenticationError("timeout waiting for authorization") from exc

        if credentials is None or not credentials.token:
            raise AuthenticationError("unable to retrieve token")

        console.print("[bold green]✓ Authorization code received![/bold green]\n")

        return credentials

    def clear_cache(self) -> None:
        """Clear the token cache (force re-authentication next time)."""
        if self.token_path.exists():
            self.token_path.unlink()
        try:
            keyring.delete_password(KEYRING_SERVICE_NAME, self._key_identifier)
        except PasswordDeleteError:
            logger.debug("No keyring entry to remove for %s", self._key_identifier)
        except KeyringError as exc:  # pragma: no cover - environment dependent
            logger.warning("Could not remove credentials from keyring: %s", exc)
        console.print("[green]Token cache cleared. You will need to re-authenticate.[/green]")
