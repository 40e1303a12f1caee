"""
GitHub credential acquisition.

Tokens come from the GitHub CLI (``gh auth token``) and are kept in a single
slot on the provider object until :meth:`CredentialProvider.clear` is called.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthErrorInfo:
    """Remediation hint shown by front ends on authentication failure."""

    title: str
    subtitle: str
    action: Optional[str] = None


AUTH_ERROR_INFO = AuthErrorInfo(
    title="GitHub CLI authentication required",
    subtitle="Install GitHub CLI and run: gh auth login",
    action="gh auth login",
)


def is_authentication_error(message: Optional[str]) -> bool:
    """Whether a reported search error points at missing credentials."""
    if not message:
        return False
    lowered = message.lower()
    return "authentication" in lowered or "token" in lowered


class CredentialProvider:
    """Obtains a GitHub token from the GitHub CLI and caches it."""

    def __init__(self, command: Sequence[str] = ("gh", "auth", "token"), timeout: float = 10.0):
        self.command = list(command)
        self.timeout = timeout
        self._token: Optional[str] = None

    def get_token(self) -> str:
        """Return the cached token or ask the CLI for one.

        Raises:
            AuthenticationError: if the CLI is missing, fails or prints nothing
        """
        if self._token:
            return self._token

        try:
            result = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"Token command {' '.join(self.command)} failed: {e}")
            raise AuthenticationError("GitHub CLI authentication failed", cause=e) from e

        token = result.stdout.strip()
        if not token:
            raise AuthenticationError("GitHub CLI returned empty token")

        self._token = token
        return token

    def clear(self) -> None:
        """Forget the cached token."""
        self._token = None


class StaticCredentialProvider(CredentialProvider):
    """Provider for a token supplied up front (e.g. ``PULLKE_GITHUB_TOKEN``)."""

    def __init__(self, token: str):
        super().__init__(command=())
        if not token:
            raise AuthenticationError("GitHub token is empty")
        self._static_token = token
        self._token = token

    def clear(self) -> None:
        self._token = self._static_token
