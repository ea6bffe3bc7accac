"""Runtime settings: YAML file, environment variables and defaults."""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-haiku-4-5-20251001",
    "openai": "gpt-4o-mini",
    "ollama": "llama3.2",
}

# env var -> settings field
_ENV_VARS: dict[str, str] = {
    "CRM_INSIGHTS_DATA_DIR": "data_dir",
    "CRM_INSIGHTS_LLM_PROVIDER": "provider",
    "CRM_INSIGHTS_LLM_MODEL": "model",
    "CRM_INSIGHTS_MAX_ROUNDS": "max_rounds",
    "CRM_INSIGHTS_TIMEOUT": "request_timeout",
    "CRM_INSIGHTS_OLLAMA_URL": "ollama_url",
}


class Settings(BaseModel):
    """Application settings shared by the CLI, the agent and the HTTP API."""

    data_dir: Path = Path("data")
    provider: str = Field(default="anthropic", description="anthropic | openai | ollama")
    model: Optional[str] = Field(default=None, description="Defaults per provider when unset")
    max_tokens: int = 1024
    max_history: int = Field(default=6, ge=1)
    max_rounds: int = Field(default=8, ge=1)
    request_timeout: float = Field(default=60.0, gt=0, description="Seconds per model round")
    ollama_url: str = "http://localhost:11434"
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def resolved_model(self) -> str:
        """Configured model, or the provider's default."""
        return self.model or DEFAULT_MODELS.get(self.provider.lower(), "")

    @classmethod
    def from_env(cls, base: Optional[dict[str, Any]] = None) -> "Settings":
        """Settings from base values overridden by CRM_INSIGHTS_* environment variables."""
        values = dict(base or {})
        for var, key in _ENV_VARS.items():
            raw = os.environ.get(var)
            if raw:
                values[key] = raw
        return cls.model_validate(values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """
        Load from YAML, then apply environment overrides.
        Supports nested (data/llm/server sections) or flat structure.
        """
        data = yaml.safe_load(Path(path).read_text()) or {}
        llm = data.get("llm", {})
        data_section = data.get("data", {})
        server = data.get("server", {})

        def _get(key: str, nested: dict, default=None):
            return nested.get(key, data.get(key, default))

        flat: dict[str, Any] = {}
        for key, nested in (
            ("data_dir", data_section),
            ("provider", llm),
            ("model", llm),
            ("max_tokens", llm),
            ("max_history", llm),
            ("max_rounds", llm),
            ("request_timeout", llm),
            ("ollama_url", llm),
            ("host", server),
            ("port", server),
        ):
            value = _get(key, nested)
            if value is not None:
                flat[key] = value
        return cls.from_env(flat)
