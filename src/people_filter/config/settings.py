"""Application settings and configuration."""

from enum import StrEnum
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from people_filter.exceptions import ConfigurationError


class Strategy(StrEnum):
    structured = "structured"
    relevance = "relevance"
    flat = "flat"


class LLMConfig(BaseModel):
    model_name: str
    base_url: str
    api_key: str
    timeout: float = 60.0
    max_retries: int = 2

    @field_validator("model_name", "base_url", "api_key")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class PipelineOptions(BaseModel):
    strategy: Strategy = Strategy.structured
    use_scorer: bool = True
    use_verifier: bool = True
    min_rating: int = Field(default=50, ge=0, le=100)
    max_concurrency: int = Field(default=20, ge=1)
    exclude_terms: list[str] = Field(default_factory=list)
    # deployment switch: treat verifier protocol/transport errors as NO_MATCH
    tolerate_verification_errors: bool = False


class Config(BaseModel):
    pipeline: PipelineOptions = Field(default_factory=PipelineOptions)


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # OpenAI configuration
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model to use")
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI-compatible endpoint")
    openai_timeout: float = Field(default=60.0, description="Per-request timeout in seconds")
    openai_max_retries: int = Field(default=2, description="Transport-level retries")

    # Sentry
    sentry_dsn: str = Field(default="", description="Sentry DSN, empty string disables Sentry")
    sentry_environment: str = Field(default="development", description="Sentry environment tag")

    # Paths
    config_file: Path = Field(default=Path("config.yaml"), description="Path to config file")
    data_dir: Path = Field(default=Path("data"), description="Directory for uploaded and produced CSV files")
    logs_dir: Path = Field(default=Path("logs"), description="Directory for log files")
    log_level: str = Field(default="INFO")

    def llm_config(self) -> LLMConfig:
        """Validated model settings. Raises ConfigurationError when incomplete."""
        try:
            return LLMConfig(
                model_name=self.openai_model,
                base_url=self.openai_base_url,
                api_key=self.openai_api_key,
                timeout=self.openai_timeout,
                max_retries=self.openai_max_retries,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid model configuration: {e}") from e

    def load_config(self) -> Config:
        """Load pipeline configuration from YAML; defaults when the file is absent."""
        if not self.config_file.exists():
            return Config()

        with open(self.config_file) as f:
            data = yaml.safe_load(f) or {}
        try:
            return Config.model_validate(data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid config file {self.config_file}: {e}") from e


@lru_cache
def get_settings() -> Settings:
    return Settings()
