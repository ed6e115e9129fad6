"""
Configuration management using Pydantic Settings.
Loads from environment variables and .env file.
"""

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from .models import SafetyPolicy


def split_csv(value: str) -> list[str]:
    """Split a comma-separated setting into stripped, non-empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application configuration loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM Provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="Which LLM provider to use"
    )
    llm_temperature: float = Field(default=0.1, description="Sampling temperature")
    llm_max_tokens: int = Field(default=4000, description="Max tokens per completion")

    # OpenAI
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4-turbo-preview", description="OpenAI model name")

    # Anthropic
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Anthropic model name"
    )

    # Browser
    headless: bool = Field(default=True, description="Run browser in headless mode")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        description="User agent for the browser context"
    )
    viewport_width: int = Field(default=1280, description="Viewport width in px")
    viewport_height: int = Field(default=720, description="Viewport height in px")

    # Action timing (milliseconds)
    navigation_timeout_ms: int = Field(default=30000, description="Navigation timeout")
    action_timeout_ms: int = Field(default=15000, description="Click/type visibility timeout")
    wait_timeout_ms: int = Field(default=30000, description="waitFor default timeout")
    step_delay_ms: int = Field(default=500, description="Politeness pause between steps")
    click_settle_ms: int = Field(default=500, description="Pause after a click")
    submit_settle_ms: int = Field(default=1000, description="Pause after submitting input")
    scroll_settle_ms: int = Field(default=500, description="Pause after scrolling")
    typing_delay_ms: int = Field(default=50, description="Delay between keystrokes")

    # Agent loop
    default_max_steps: int = Field(default=30, description="Step budget when a goal sets none")
    history_window: int = Field(default=5, description="Recent steps shown to the LLM")

    # Safety & Rate Limiting
    allowed_domains: str = Field(
        default="",
        description="Comma-separated list of allowed domains (empty = any)"
    )
    blocked_domains: str = Field(
        default="facebook.com,twitter.com",
        description="Comma-separated list of blocked domains"
    )
    require_confirmation: str = Field(
        default="checkout,payment,purchase,delete",
        description="Comma-separated URL fragments that flag an action for confirmation"
    )
    max_steps_per_domain: int = Field(default=15, description="Per-host action budget")
    rate_limit_ms: int = Field(default=1000, description="Cooldown between actions on a host")
    respect_robots_txt: bool = Field(default=True, description="Advisory robots.txt flag")

    # Observability
    logs_dir: str = Field(default="./logs", description="Run logs and reports directory")
    screenshots_dir: str = Field(default="./screenshots", description="Screenshot directory")
    log_level: str = Field(default="INFO", description="Root log level")

    # History store
    memory_enabled: bool = Field(default=False, description="Persist run history to SQLite")
    database_path: str = Field(
        default="./data/agent-memory.db",
        description="SQLite database path"
    )

    # Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3000, description="API port")

    def safety_policy(self) -> SafetyPolicy:
        """Build the safety policy described by the safety settings."""
        return SafetyPolicy(
            allowed_domains=split_csv(self.allowed_domains) or None,
            blocked_domains=split_csv(self.blocked_domains) or None,
            require_confirmation=split_csv(self.require_confirmation),
            max_steps_per_domain=self.max_steps_per_domain or None,
            rate_limit_ms=self.rate_limit_ms or None,
            respect_robots_txt=self.respect_robots_txt,
            user_agent=self.user_agent,
        )


# Global settings instance
settings = Settings()
