import asyncio
from typing import Any, Self

import aiohttp
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Request
from playwright.async_api import Response

from fazuh.chalk.blackboard.blackboard import Blackboard
from fazuh.chalk.blackboard.path import Path
from fazuh.chalk.config import Config
from fazuh.chalk.core.coordinator import ActionCoordinator
from fazuh.chalk.core.coordinator import QueueId
from fazuh.chalk.core.harvester import CredentialHarvester
from fazuh.chalk.core.harvester import ObservedRequest
from fazuh.chalk.core.harvester import ObservedResponse
from fazuh.chalk.core.notifier import FETCH_ASSIGNMENTS
from fazuh.chalk.core.notifier import FETCH_COURSES
from fazuh.chalk.core.notifier import Listener
from fazuh.chalk.core.notifier import LogLevel
from fazuh.chalk.core.notifier import Notifier
from fazuh.chalk.error import AuthenticationError
from fazuh.chalk.error import ConfigError
from fazuh.chalk.error import FetchError
from fazuh.chalk.transform.activities import parse_activities
from fazuh.chalk.transform.courses import parse_courses


def is_assignments_stream(request_data: Any) -> bool:
    """Whether a stream request asked for the deployment feed that carries assignments."""
    if not isinstance(request_data, dict):
        return False
    providers = request_data.get("providers")
    if not isinstance(providers, dict):
        return False
    deployment = providers.get("bb_deployment")
    # Empty provider options such as {} still count as a request.
    if deployment is None or deployment in (False, 0, ""):
        return False
    return len(providers) < 3


class Engine:
    """Signs into Blackboard and delivers courses and activities as notifications.

    Operations are queued and run once their precondition holds: browser actions
    wait for the signed-in page, API actions wait for the credentials harvested
    from the page's traffic. Results arrive through `on(...)` listeners:

    - `log`: {timestamp, level, message}
    - `fetch:courses`: {courses: [...]}
    - `fetch:assignments`: {activities: [...]}
    """

    def __init__(
        self,
        username: str,
        password: str,
        debug: bool = False,
        browser: str = "firefox",
        fetch_timeout: int = 30,
        blackboard: Blackboard | None = None,
    ):
        if not username or not password:
            raise ConfigError("Both username and password are required.")

        self.username = username
        self.password = password
        self.debug = debug
        self.fetch_timeout = fetch_timeout

        self.notifier = Notifier()
        self.coordinator = ActionCoordinator(self.log)
        self.harvester = CredentialHarvester(self.coordinator, self.log)
        self.blackboard = blackboard or Blackboard(browser, headless=not debug, log=self.log)
        self.initialized = asyncio.Event()

    @classmethod
    def from_config(cls, config: Config) -> Self:
        return cls(
            config.username,
            config.password,
            debug=config.debug,
            browser=config.browser,
            fetch_timeout=config.fetch_timeout,
        )

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def on(self, event: str, listener: Listener) -> None:
        self.notifier.subscribe(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        self.notifier.unsubscribe(event, listener)

    def log(self, level: LogLevel, message: str) -> None:
        self.notifier.log(level, message)

    @property
    def credentials(self):
        return self.harvester.credentials

    async def initialize(self) -> bool:
        """Launches the browser, observes its traffic and logs in if needed.

        Opens the browser queue once the page is signed in. The API queue opens
        separately, whenever the harvester has both credentials.

        Raises:
            AuthenticationError: If the session cannot be established.
        """
        self.log("INFO", "Engine initialization started.")
        try:
            await self.blackboard.start()
            await self.blackboard.observe_traffic(self._on_request, self._on_response)
            await self.blackboard.goto_home()

            if not await self.blackboard.is_login_page():
                self.log("INFO", "User is already logged in.")
            else:
                self.log("INFO", "User not logged in, proceeding with login.")
                await self.blackboard.login(self.username, self.password)
                if await self.blackboard.is_login_page():
                    raise AuthenticationError("Still on the login page after signing in.")
                self.log("INFO", "Login successful.")
        except AuthenticationError as e:
            self.log("ERROR", f"Engine initialization failed: {e}")
            raise
        except Exception as e:
            self.log("ERROR", f"Engine initialization failed: {e}")
            raise AuthenticationError(str(e)) from e

        self.initialized.set()
        self.log("INFO", "Browser is ready. Processing browser action queue.")
        self.coordinator.open_gate(QueueId.BROWSER)
        return True

    async def close(self):
        await self.blackboard.close()

    async def wait_idle(self):
        """Waits for the actions that can currently run to finish."""
        await self.coordinator.wait_idle()

    def request_activities(self) -> None:
        """Queues a browser action that opens the Activity stream.

        The stream response is picked up from the page's traffic and emitted as
        `fetch:assignments`.
        """
        self.log("DEBUG", "Queueing browser action: request_activities")
        self.coordinator.enqueue(QueueId.BROWSER, self._open_activity_stream)

    def request_courses(self) -> None:
        """Queues an API action that fetches the course memberships."""
        self.log("DEBUG", "Queueing API action: request_courses")
        self.coordinator.enqueue(QueueId.API, self._fetch_courses)

    async def _open_activity_stream(self):
        self.log("INFO", "Navigating to Activity page.")
        await self.blackboard.open_activity_stream()

    async def _fetch_courses(self):
        self.log("INFO", "Fetching courses via API.")
        user_id = self.credentials.user_id
        if not isinstance(user_id, str) or not user_id:
            self.log("ERROR", "Failed to fetch or process courses: user record has no id.")
            return
        url = Path.memberships(user_id)
        try:
            data = await self._get_json(url)
        except (aiohttp.ClientError, asyncio.TimeoutError, FetchError) as e:
            self.log("ERROR", f"Failed to fetch or process courses: {e}")
            return

        self.notifier.emit(FETCH_COURSES, parse_courses(data))
        self.log("INFO", "Successfully fetched and processed courses.")

    async def _get_json(self, url: str) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.fetch_timeout)
        headers = {"cookie": self.credentials.cookie or ""}
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, headers=headers) as resp:
                if not resp.ok:
                    raise FetchError(resp.status, url)
                return await resp.json(content_type=None)

    async def _on_request(self, request: Request):
        headers = await request.all_headers()
        self.harvester.observe_request(ObservedRequest(request.url, request.method, headers))

    async def _on_response(self, response: Response):
        url = response.url
        method = response.request.method

        if self.harvester.is_identity_response(url, method):
            try:
                text = await response.text()
            except PlaywrightError as e:
                self.log("DEBUG", f"Could not read Ultra page body: {e}")
                return
            self.harvester.observe_response(ObservedResponse(url, method, text))
            return

        if url == Path.STREAM and method == "POST":
            await self._handle_activity_stream(response)

    async def _handle_activity_stream(self, response: Response):
        try:
            request_data = response.request.post_data_json
            if not is_assignments_stream(request_data):
                logger.debug(f"Ignoring activity stream response for {request_data!r}")
                return

            data = await response.json()
            self.notifier.emit(FETCH_ASSIGNMENTS, parse_activities(data))
            self.log("INFO", "Fetched and processed assignments from activity stream.")
        except Exception as e:
            self.log("ERROR", f"Error processing activity stream response: {e}")
