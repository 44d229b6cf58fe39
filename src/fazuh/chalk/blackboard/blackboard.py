from collections.abc import Awaitable, Callable, Iterable
import re

from playwright.async_api import Request
from playwright.async_api import Response
from playwright.async_api import Route
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from fazuh.chalk.blackboard.path import Path
from fazuh.chalk.core.notifier import LogCallback
from fazuh.chalk.core.notifier import loguru_log

LOGIN_PAGE_HEADER = '<h1 class="welcome">Login to Mapúa MCL Blackboard</h1>'
HOST_PATTERN = re.compile(r"https://mcl\.blackboard\.com/")

RequestHandler = Callable[[Request], Awaitable[None]]
ResponseHandler = Callable[[Response], Awaitable[None]]


class Blackboard:
    """Playwright session on the Blackboard Ultra portal."""

    def __init__(
        self, browser: str = "firefox", headless: bool = True, log: LogCallback | None = None
    ):
        self.browser_name = browser
        self.headless = headless
        self._log = log or loguru_log

    async def start(self):
        """Start the browser"""
        self.playwright = await async_playwright().start()

        match self.browser_name:
            case "chromium":
                browser = self.playwright.chromium
            case "firefox":
                browser = self.playwright.firefox
            case "webkit":
                browser = self.playwright.webkit
            case _:
                self._log(
                    "ERROR", f"Unsupported browser: {self.browser_name}. Defaulting to Firefox."
                )
                browser = self.playwright.firefox

        self.browser = await browser.launch(headless=self.headless)
        self.context = await self.browser.new_context(ignore_https_errors=True)
        self.page = await self.context.new_page()

    async def close(self):
        """Close the browser"""
        # NOTE: self.browser and self.playwright is created at self.start(), not self.__init__(),
        # thus there is no guarantee it is initialized yet.
        if hasattr(self, "browser"):
            await self.browser.close()
        if hasattr(self, "playwright"):
            await self.playwright.stop()

    async def goto_home(self):
        await self.page.goto(Path.HOSTNAME)

    async def observe_traffic(self, on_request: RequestHandler, on_response: ResponseHandler):
        """Feeds every portal request and every response to the given handlers.

        Requests are observed through a route so the headers Playwright adds
        (including the cookie) are visible. The route always continues the request.
        """

        async def handle_route(route: Route):
            try:
                await on_request(route.request)
            finally:
                await route.continue_()

        await self.page.route(HOST_PATTERN, handle_route)
        self.page.on("response", on_response)

    async def is_login_page(self, content: str | None = None) -> bool:
        """Check if current page is the login page."""
        return await self._check_page_content([LOGIN_PAGE_HEADER], content)

    async def login(self, username: str, password: str):
        """Fills and submits the login form.

        The cookie consent banner and the post-login network idle wait are both
        optional: their timeouts are logged and the flow carries on.
        """
        try:
            await self.page.get_by_role("button", name="OK").click(timeout=5000)
            self._log("DEBUG", "Clicked cookie consent button.")
        except PlaywrightTimeoutError:
            self._log("DEBUG", "Cookie consent banner not found, skipping.")

        await self.page.get_by_role("textbox", name="Username").fill(username)
        await self.page.get_by_role("textbox", name="Password").fill(password)
        await self.page.get_by_role("button", name="Sign In", exact=True).click()

        try:
            await self.page.wait_for_load_state("networkidle", timeout=10000)
        except PlaywrightTimeoutError:
            self._log("WARN", "Network did not become idle after login, continuing anyway.")

    async def open_activity_stream(self):
        """Navigates to the Activity stream, which makes the page request it."""
        await self.page.get_by_role("link", name="Activity").click()

    async def _check_page_content(
        self, keywords: Iterable[str], content: str | None = None
    ) -> bool:
        """Check if page contents contains a specific string"""
        if content is None:
            if not hasattr(self, "page"):
                return False
            content = await self.content
        return any(kw in content for kw in keywords)

    @property
    async def content(self) -> str:
        """Get the current page content."""
        return await self.page.content()
