"""Runtime configuration, read from the environment (.env supported)."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

from legacy_agent.storage import DEFAULT_PRESETS_DIR

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


class AgentConfig(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    presets_dir: Path = DEFAULT_PRESETS_DIR

    # LLM connection; an empty provider_url selects EchoLLM
    provider_url: str = ""
    provider_format: str = "anthropic"
    api_key: str = ""
    model: str = "claude-3-5-sonnet-20241022"
    timeout: float = 60.0
    max_tokens: int = 1024
    temperature: float = 0.3

    # Turn loop
    max_rounds: int = 5
    history_limit: int = 20
    message_limit: int = 8000

    @classmethod
    def from_env(cls) -> AgentConfig:
        """Build a config from environment variables, falling back to defaults."""
        env = {
            "data_dir": os.getenv("DATA_DIR"),
            "presets_dir": os.getenv("PRESETS_DIR"),
            "provider_url": os.getenv("LLM_PROVIDER_URL"),
            "provider_format": os.getenv("LLM_PROVIDER_FORMAT"),
            "api_key": os.getenv("LLM_API_KEY"),
            "model": os.getenv("LLM_MODEL"),
            "timeout": os.getenv("LLM_TIMEOUT"),
            "max_tokens": os.getenv("LLM_MAX_TOKENS"),
            "temperature": os.getenv("LLM_TEMPERATURE"),
            "max_rounds": os.getenv("AGENT_MAX_ROUNDS"),
            "history_limit": os.getenv("AGENT_HISTORY_LIMIT"),
            "message_limit": os.getenv("AGENT_MESSAGE_LIMIT"),
        }
        return cls.model_validate({k: v for k, v in env.items() if v is not None})
