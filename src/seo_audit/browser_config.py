"""
Browser configuration for Playwright-based page fetching.

This module provides a validated Pydantic configuration model for the
headless browser fetcher and a couple of pre-configured instances.
"""
from typing import List, Literal

from pydantic import BaseModel, Field


class BrowserConfig(BaseModel):
    """
    Configuration for the Playwright-based BrowserPageFetcher.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use for rendering"
    )

    timeout: int = Field(
        default=30000,
        description="Page load timeout in milliseconds",
        ge=1000,
        le=300000
    )

    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default="networkidle",
        description="When to consider navigation complete"
    )

    viewport_width: int = Field(default=1920, ge=320)
    viewport_height: int = Field(default=1080, ge=320)

    block_resources: List[str] = Field(
        default_factory=list,
        description="Resource types to block (e.g., 'image', 'font', 'media')"
    )

    launch_args: List[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"],
        description="Additional browser launch arguments"
    )


DEFAULT_CONFIG = BrowserConfig()

FAST_CONFIG = BrowserConfig(
    wait_until="domcontentloaded",
    timeout=15000,
    block_resources=["image", "font", "media"],
)
"""
Fast configuration optimized for speed.

Blocks heavy resources and uses faster page load detection.
"""
