"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from authrisk.domain.enums import AuthAction
from authrisk.domain.rate_limit import RateLimitPolicy


class Settings(BaseSettings):
    app_name: str = "auth-risk"
    debug: bool = False
    log_level: str = "INFO"

    # Rate-limit policy table
    login_max_attempts: int = 40
    login_window_minutes: int = 5
    register_max_attempts: int = 15
    register_window_minutes: int = 15

    # Primary counter store, any limits async storage URI
    rate_limit_storage_uri: str = "async+memory://"

    # Time bounds on external collaborators
    rate_limit_timeout_seconds: float = 1.5
    audit_timeout_seconds: float = 2.0

    # Web layer
    enforce_same_origin: bool = True

    model_config = {"env_prefix": "AUTHRISK_"}

    def rate_limit_policies(self) -> dict[AuthAction, RateLimitPolicy]:
        return {
            AuthAction.LOGIN: RateLimitPolicy(
                max_attempts=self.login_max_attempts,
                window_minutes=self.login_window_minutes,
            ),
            AuthAction.REGISTER: RateLimitPolicy(
                max_attempts=self.register_max_attempts,
                window_minutes=self.register_window_minutes,
            ),
        }


settings = Settings()
