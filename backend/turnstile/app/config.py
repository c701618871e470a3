"""Centralized application configuration for the Turnstile gateway."""
from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_ROOT_DIR = Path(__file__).resolve().parents[3]
_SERVICE_DIR = _ROOT_DIR / "backend" / "turnstile"
_DEFAULT_ENV_FILES: tuple[Path, ...] = (
    _ROOT_DIR / ".env",
    _SERVICE_DIR / ".env",
)

DEFAULT_SCRIPT_URL = "https://challenges.cloudflare.com/turnstile/v0/api.js"
DEFAULT_VERIFICATION_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
DEFAULT_FIELD_NAME = "cf-turnstile-response"
DEFAULT_READY_HOOK = "turnstileReady"

WidgetTheme = Literal["light", "dark", "auto"]
WidgetSize = Literal["normal", "compact", "flexible"]


class TurnstileSettings(BaseModel):
    """Cloudflare Turnstile widget and siteverify configuration."""

    site_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TURNSTILE_SITE_KEY", "site_key"),
        description="Public site key rendered into pages.",
    )
    secret_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TURNSTILE_SECRET_KEY", "secret_key"),
        description="Private key sent to the siteverify endpoint.",
    )
    script_url: str = Field(
        default=DEFAULT_SCRIPT_URL,
        validation_alias=AliasChoices("TURNSTILE_SCRIPT_URL", "script_url"),
    )
    verification_url: str = Field(
        default=DEFAULT_VERIFICATION_URL,
        validation_alias=AliasChoices("TURNSTILE_VERIFICATION_URL", "verification_url"),
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        validation_alias=AliasChoices("TURNSTILE_TIMEOUT_SECONDS", "timeout_seconds"),
    )
    ready_hook: str = Field(
        default=DEFAULT_READY_HOOK,
        validation_alias=AliasChoices("TURNSTILE_READY_HOOK", "ready_hook"),
        description="Global function the explicit script variant calls once initialised.",
    )
    default_field_name: str = Field(default=DEFAULT_FIELD_NAME)
    default_theme: WidgetTheme = "light"
    default_size: WidgetSize = "normal"
    test_bypass_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TURNSTILE_TEST_BYPASS_TOKEN", "test_bypass_token"),
    )

    @field_validator("site_key", "secret_key", "test_bypass_token", mode="before")
    @classmethod
    def _clean_optional_strings(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @field_validator("script_url", "verification_url", mode="before")
    @classmethod
    def _normalise_url(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("Turnstile URLs must be provided")
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Turnstile URLs must be non-empty strings")
        return cleaned

    @field_validator("ready_hook", "default_field_name", mode="before")
    @classmethod
    def _normalise_name(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("Names must be provided")
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Names must be non-empty strings")
        return cleaned

    @property
    def enabled(self) -> bool:
        """Return ``True`` when server-side verification can be performed."""

        return bool(self.secret_key)

    @property
    def explicit_script_url(self) -> str:
        """Script URL variant that calls :attr:`ready_hook` after initialising."""

        separator = "&" if "?" in self.script_url else "?"
        return f"{self.script_url}{separator}onload={self.ready_hook}"


class Settings(BaseSettings):
    """Top level Turnstile gateway configuration."""

    env: str = Field(default="dev", validation_alias=AliasChoices("ENV", "APP_ENV"))
    turnstile: TurnstileSettings = Field(default_factory=TurnstileSettings)

    model_config = SettingsConfigDict(
        env_file=_DEFAULT_ENV_FILES,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )


settings = Settings()

__all__ = [
    "DEFAULT_FIELD_NAME",
    "DEFAULT_READY_HOOK",
    "DEFAULT_SCRIPT_URL",
    "DEFAULT_VERIFICATION_URL",
    "Settings",
    "TurnstileSettings",
    "WidgetSize",
    "WidgetTheme",
    "settings",
]
