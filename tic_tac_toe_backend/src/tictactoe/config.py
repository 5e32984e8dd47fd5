import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field


# PUBLIC_INTERFACE
class Settings(BaseModel):
    """Runtime configuration, read once from the environment at startup."""

    openai_api_key: Optional[str] = Field(None, description="Credential for the remote move suggestion service.")
    openai_url: str = Field("https://api.openai.com/v1/chat/completions", description="Chat completions endpoint.")
    openai_model: str = Field("gpt-3.5-turbo", description="Model asked for move suggestions.")
    remote_timeout: float = Field(5.0, gt=0, description="Seconds before the remote request is abandoned.")
    ai_move_delay: float = Field(0.55, ge=0, description="Pause before the automated player moves.")
    secret_key: str = Field("tictactoe-secret", description="JWT signing key. Override in production.")
    token_expire_minutes: int = Field(120, gt=0, description="Session token lifetime.")
    log_level: str = Field("INFO", description="Root logging level.")

    model_config = {"frozen": True}

    @property
    def remote_enabled(self) -> bool:
        return bool(self.openai_api_key)

    # PUBLIC_INTERFACE
    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from environment variables, ignoring unset ones."""
        env = os.environ if environ is None else environ
        mapping = {
            "openai_api_key": "OPENAI_API_KEY",
            "openai_url": "TICTACTOE_OPENAI_URL",
            "openai_model": "TICTACTOE_OPENAI_MODEL",
            "remote_timeout": "TICTACTOE_REMOTE_TIMEOUT",
            "ai_move_delay": "TICTACTOE_AI_MOVE_DELAY",
            "secret_key": "TICTACTOE_SECRET_KEY",
            "token_expire_minutes": "TICTACTOE_TOKEN_EXPIRE_MINUTES",
            "log_level": "TICTACTOE_LOG_LEVEL",
        }
        values = {field: env[name] for field, name in mapping.items() if env.get(name)}
        return cls(**values)


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
