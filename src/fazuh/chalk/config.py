import os
from typing import Self

from dotenv import load_dotenv
from loguru import logger
import requests


class Config:
    """Application configuration manager.

    Handles loading and validation of environment variables and configuration settings
    for the Chalk application, including credentials, browser settings, and the
    optional Discord webhook.
    """

    _instance: Self | None = None

    def load(self):
        """Load environment variables

        The priority is .env file > environment variables
        See .env-example for the required variables
        """
        load_dotenv()
        self.username = os.getenv("USERNAME")
        self.password = os.getenv("PASSWORD")
        if self.username is None or self.password is None:
            logger.error("USERNAME and PASSWORD environment variables are not set.")

        self.debug = self._is_truthy(os.getenv("DEBUG", "false"))
        self.browser = os.getenv("BROWSER", "firefox").lower()
        self.fetch_timeout = int(os.getenv("FETCH_TIMEOUT", 30))

        self.discord_webhook_url = os.getenv("DISCORD_WEBHOOK_URL")
        if self.discord_webhook_url and not self._is_webhook_valid(self.discord_webhook_url):
            logger.error("Invalid DISCORD_WEBHOOK_URL. Webhook delivery disabled.")
            self.discord_webhook_url = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)

            cls._instance.load()
        return cls._instance

    @property
    def headless(self) -> bool:
        return not self.debug

    @staticmethod
    def _is_webhook_valid(url: str) -> bool:
        try:
            resp = requests.head(url, timeout=5)
            return resp.status_code == 200
        except requests.RequestException:
            return False

    def _is_truthy(self, bool_value: str) -> bool:
        return bool_value.lower() in (
            "true",
            "1",
            "yes",
        )
