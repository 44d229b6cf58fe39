from dataclasses import dataclass, field
import json
from typing import Any

from fazuh.chalk.blackboard.path import Path
from fazuh.chalk.core.coordinator import ActionCoordinator
from fazuh.chalk.core.coordinator import QueueId
from fazuh.chalk.core.notifier import LogCallback
from fazuh.chalk.util import get_string

USER_LEFT_MARKER = "user: "
USER_RIGHT_MARKER = ",\n"


@dataclass
class Credentials:
    """Session material recovered from the portal's own traffic.

    Expected shape of `identity`:
    {emailAddress, familyName, givenName, uuid, foundationsId, userName, id, institutionEmail}
    """

    cookie: str | None = None
    identity: dict[str, Any] | None = None

    @property
    def complete(self) -> bool:
        return self.cookie is not None and self.identity is not None

    @property
    def user_id(self) -> str | None:
        if self.identity is None:
            return None
        return self.identity.get("id")


@dataclass(frozen=True)
class ObservedRequest:
    url: str
    method: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ObservedResponse:
    url: str
    method: str
    text: str


class CredentialHarvester:
    """Watches portal traffic and opens the API gate once credentials are known.

    Two independent signals are combined: the `cookie` header of any request to
    the portal, and the user object the Ultra shell page embeds in its HTML.
    """

    def __init__(
        self,
        coordinator: ActionCoordinator,
        log: LogCallback,
        hostname: str = Path.HOSTNAME,
        identity_url: str = Path.ULTRA,
    ):
        self.coordinator = coordinator
        self.credentials = Credentials()
        self._log = log
        self.hostname = hostname
        self.identity_url = identity_url

    def observe_request(self, request: ObservedRequest) -> None:
        """Records the session cookie carried by an outgoing portal request."""
        if not request.url.startswith(self.hostname):
            return

        cookie = next((v for k, v in request.headers.items() if k.lower() == "cookie"), None)
        if cookie:
            self.credentials.cookie = cookie
            self.check_ready()

    def is_identity_response(self, url: str, method: str) -> bool:
        return url == self.identity_url and method.upper() == "GET"

    def observe_response(self, response: ObservedResponse) -> None:
        """Parses the user object out of the Ultra shell page, if this is it."""
        if not self.is_identity_response(response.url, response.method):
            return

        fragment = get_string(response.text, USER_LEFT_MARKER, USER_RIGHT_MARKER)
        if fragment is None:
            self._log("DEBUG", "User data marker not found in Ultra page.")
            return

        try:
            identity = json.loads(fragment)
        except json.JSONDecodeError as e:
            self._log("DEBUG", f"Failed to parse user data: {e}")
            return

        if not isinstance(identity, dict):
            self._log("DEBUG", "User data is not an object, ignoring.")
            return

        self.credentials.identity = identity
        self.check_ready()

    def check_ready(self) -> bool:
        """Opens the API gate if both cookie and identity are present.

        Safe to call any number of times; the gate opens once.
        """
        if self.coordinator.is_open(QueueId.API):
            return True

        if not self.credentials.complete:
            return False

        self._log("INFO", "API credentials acquired.")
        self.coordinator.open_gate(QueueId.API)
        return True
