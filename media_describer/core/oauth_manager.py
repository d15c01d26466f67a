"""
OAuth Token Manager for the Media Describer pipeline.

Loads a cached user token from disk, or runs an interactive installed-app
authorization flow to mint one, then persists it for later runs.
"""

import os
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from media_describer.errors import AuthorizationError

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ['https://www.googleapis.com/auth/drive']

REDIRECT_HOST = "localhost"
REDIRECT_PORT = 8080


class TokenState(str, Enum):
    NO_TOKEN = "no_token"
    HAS_TOKEN = "has_token"


class Authorizer(ABC):
    """Completes an authorization flow and returns fresh credentials."""

    @abstractmethod
    def authorize(self, client_secrets_file: Path, scopes: Sequence[str]) -> Credentials:
        ...


def _load_flow(client_secrets_file: Path, scopes: Sequence[str]) -> InstalledAppFlow:
    try:
        return InstalledAppFlow.from_client_secrets_file(str(client_secrets_file), scopes=list(scopes))
    except (OSError, ValueError) as e:
        raise AuthorizationError(f"Unable to parse client secret file to config: {e}") from e


class LocalServerAuthorizer(Authorizer):
    """
    Opens the consent page in a browser and captures the code on a local
    callback listener.
    """

    def __init__(self, host: str = REDIRECT_HOST, port: int = REDIRECT_PORT, open_browser: bool = True):
        self.host = host
        self.port = port
        self.open_browser = open_browser

    def authorize(self, client_secrets_file: Path, scopes: Sequence[str]) -> Credentials:
        flow = _load_flow(client_secrets_file, scopes)
        logger.info("You will now be taken to your browser for authentication")
        try:
            credentials = flow.run_local_server(
                host=self.host,
                port=self.port,
                open_browser=self.open_browser,
                access_type="offline",
                authorization_prompt_message="Authentication URL: {url}",
                success_message="Authentication successful. You may close this browser window."
            )
        except Exception as e:
            raise AuthorizationError(f"Unable to retrieve token from web: {e}") from e

        logger.info("Authentication successful")
        return credentials


class ConsoleAuthorizer(Authorizer):
    """
    Prints the consent URL and reads the authorization code pasted by the user.
    """

    def __init__(
        self,
        redirect_uri: str = f"http://{REDIRECT_HOST}:{REDIRECT_PORT}",
        input_func: Callable[[str], str] = input
    ):
        self.redirect_uri = redirect_uri
        self.input_func = input_func

    def authorize(self, client_secrets_file: Path, scopes: Sequence[str]) -> Credentials:
        flow = _load_flow(client_secrets_file, scopes)
        flow.redirect_uri = self.redirect_uri

        auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")
        print(f"Go to the following link in your browser then type the authorization code:\n{auth_url}")

        try:
            code = self.input_func("Authorization code: ").strip()
        except (EOFError, KeyboardInterrupt) as e:
            raise AuthorizationError("Unable to read authorization code") from e
        if not code:
            raise AuthorizationError("No authorization code received")

        try:
            flow.fetch_token(code=code)
        except Exception as e:
            raise AuthorizationError(f"Unable to retrieve token from web: {e}") from e

        return flow.credentials


class StaticAuthorizer(Authorizer):
    """Hands back credentials obtained elsewhere."""

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    def authorize(self, client_secrets_file: Path, scopes: Sequence[str]) -> Credentials:
        return self.credentials


class CredentialStore:
    """
    Owns the user's OAuth token for the lifetime of the process.

    Starts in NO_TOKEN. Moves to HAS_TOKEN either by loading a usable token
    from the cache file or by completing an authorization flow, after which
    the new token is written back to the cache file.
    """

    def __init__(
        self,
        token_file: Path,
        client_secrets_file: Path,
        scopes: Optional[Sequence[str]] = None,
        authorizer: Optional[Authorizer] = None
    ):
        """
        Args:
            token_file: Path of the cached authorized-user JSON
            client_secrets_file: OAuth client secret JSON (installed app)
            scopes: OAuth scopes to request
            authorizer: Flow used when no cached token is usable
        """
        self.token_file = Path(token_file)
        self.client_secrets_file = Path(client_secrets_file)
        self.scopes = list(scopes or DRIVE_SCOPES)
        self.authorizer = authorizer or LocalServerAuthorizer()
        self.state = TokenState.NO_TOKEN
        self._credentials: Optional[Credentials] = None

    def get_credentials(self) -> Credentials:
        """
        Return authorized credentials, minting them interactively if needed.

        Raises:
            AuthorizationError: If the client secret file is unusable, or no
                                token could be loaded or minted
        """
        if self.state is TokenState.HAS_TOKEN and self._credentials is not None:
            return self._credentials

        # A bad client secret is fatal even when a cached token would do
        _load_flow(self.client_secrets_file, self.scopes)

        credentials = self._load_cached()
        if credentials is None:
            credentials = self.authorizer.authorize(self.client_secrets_file, self.scopes)
            if credentials is None:
                raise AuthorizationError("Authorization flow returned no credentials")
            self.save(credentials)

        self._credentials = credentials
        self.state = TokenState.HAS_TOKEN
        return credentials

    def _load_cached(self) -> Optional[Credentials]:
        if not self.token_file.exists():
            logger.info(f"No cached token at {self.token_file}")
            return None

        try:
            credentials = Credentials.from_authorized_user_file(str(self.token_file), self.scopes)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable token file {self.token_file}: {e}")
            return None

        if not credentials.valid and credentials.refresh_token:
            try:
                credentials.refresh(Request())
            except RefreshError as e:
                logger.warning(f"Cached token could not be refreshed: {e}")
                return None
            except GoogleAuthError as e:
                raise AuthorizationError(f"Unable to refresh oauth token: {e}") from e
            self.save(credentials)
            logger.info("Refreshed cached OAuth token")

        return credentials

    def save(self, credentials: Credentials) -> None:
        """Persist credentials to the token file, readable by the owner only."""
        logger.info(f"Saving credential file to: {self.token_file}")
        try:
            fd = os.open(self.token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                f.write(credentials.to_json())
        except OSError as e:
            raise AuthorizationError(f"Unable to cache oauth token: {e}") from e


def build_credential_store(
    token_file: Path,
    client_secrets_file: Path,
    scopes: Optional[Sequence[str]] = None,
    manual_auth: bool = False
) -> CredentialStore:
    """Create a store using the browser flow, or the paste-code flow if manual_auth."""
    authorizer = ConsoleAuthorizer() if manual_auth else LocalServerAuthorizer()
    return CredentialStore(
        token_file=token_file,
        client_secrets_file=client_secrets_file,
        scopes=scopes,
        authorizer=authorizer
    )
