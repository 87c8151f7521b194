from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional
import os

from pydantic import BaseModel, Field, field_validator

from seo_audit.browser_config import BrowserConfig
from seo_audit.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DELAY_MS,
    DEFAULT_MAX_PAGES_TO_CRAWL,
    DEFAULT_PAGE_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    MAX_PAGES_TO_CRAWL,
    MIN_PAGES_TO_CRAWL,
)

load_dotenv()  # Loads variables from .env file


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class SiteCrawlOptions(BaseModel):
    """
    Options recognized by the site crawler.

    All fields are validated by Pydantic. ``max_pages`` is clamped into
    its allowed range rather than rejected.
    """

    max_pages: int = Field(
        default=DEFAULT_MAX_PAGES_TO_CRAWL,
        description="Maximum pages to crawl successfully (clamped to 1-500)",
    )

    concurrency: int = Field(
        default=DEFAULT_CONCURRENCY,
        description="Parallel fetches per batch (recommended 1-10)",
        ge=1,
    )

    delay_ms: int = Field(
        default=DEFAULT_DELAY_MS,
        description="Politeness delay between batches in milliseconds",
        ge=0,
    )

    timeout: int = Field(
        default=DEFAULT_PAGE_TIMEOUT_MS,
        description="Per-page fetch timeout in milliseconds",
        gt=0,
    )

    respect_robots_txt: bool = Field(
        default=True,
        description="Skip URLs disallowed by robots.txt",
    )

    user_agent: Optional[str] = Field(
        default=None,
        description="Custom user agent for page fetches",
    )

    render_js: bool = Field(
        default=False,
        description="Render pages in a headless browser before extraction",
    )

    browser_config: Optional[BrowserConfig] = Field(
        default=None,
        description="Browser settings used when render_js is set (DEFAULT_CONFIG if None)",
    )

    model_config = {"frozen": True}

    @field_validator("max_pages", mode="before")
    @classmethod
    def clamp_max_pages(cls, value):
        return max(MIN_PAGES_TO_CRAWL, min(MAX_PAGES_TO_CRAWL, int(value)))

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000


@dataclass
class Config:
    """Configuration for the command-line surface."""
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"
    max_pages: int = DEFAULT_MAX_PAGES_TO_CRAWL
    concurrency: int = DEFAULT_CONCURRENCY
    delay_ms: int = DEFAULT_DELAY_MS
    timeout_ms: int = DEFAULT_PAGE_TIMEOUT_MS
    respect_robots_txt: bool = True

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Returns:
            Config: Configuration instance with values from environment
        """
        return cls(
            user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            max_pages=int(os.getenv("SEO_MAX_PAGES", str(DEFAULT_MAX_PAGES_TO_CRAWL))),
            concurrency=int(os.getenv("SEO_CONCURRENCY", str(DEFAULT_CONCURRENCY))),
            delay_ms=int(os.getenv("SEO_DELAY_MS", str(DEFAULT_DELAY_MS))),
            timeout_ms=int(os.getenv("SEO_TIMEOUT_MS", str(DEFAULT_PAGE_TIMEOUT_MS))),
            respect_robots_txt=_env_bool("SEO_RESPECT_ROBOTS", True),
        )

    def to_crawl_options(self, **overrides) -> SiteCrawlOptions:
        """Build validated crawl options, letting explicit values win.

        Args:
            **overrides: Option values that replace the configured ones
                (None values are ignored)

        Returns:
            SiteCrawlOptions instance
        """
        values = {
            "max_pages": self.max_pages,
            "concurrency": self.concurrency,
            "delay_ms": self.delay_ms,
            "timeout": self.timeout_ms,
            "respect_robots_txt": self.respect_robots_txt,
            "user_agent": self.user_agent,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return SiteCrawlOptions(**values)
