# src/reporank/core/settings.py
"""
Configuration settings for repository ranking runs.

Two layers:
- SearchConfig: the run configuration (criteria, prompts, filters) loaded from
  a YAML file with OmegaConf and validated with pydantic.
- RuntimeSettings: credentials and transport settings read from the
  environment / .env file.
"""

import logging
from pathlib import Path
from typing import List, Optional

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reporank.core.errors import ConfigurationError
from reporank.tasks.ranking.criteria_registry import CriteriaRegistry

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/repo_search_config.yaml"


class GenAiCriterionConfig(BaseModel):
    """A criterion answered by the model from the README."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    type: str = Field(default="boolean", description="boolean, integer or string")
    description: str = ""
    weight: float = 0.0
    minimum: Optional[int] = None
    maximum: Optional[int] = None


class RepoCriterionConfig(BaseModel):
    """A criterion read directly from a repository metadata field."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    description: str = ""
    data_field: str = Field(alias="dataField")
    weight: float = 0.0


class SearchConfig(BaseModel):
    """Run configuration for one organization ranking."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", protected_namespaces=())

    model_id: str = Field(default="anthropic/claude-3.5-sonnet", alias="bedrockModel")
    output_file: str = Field(default="repo_rankings.csv", alias="outputFile")
    years_included: int = Field(default=1, alias="yearsIncluded", ge=0)
    sdk_languages: List[str] = Field(default_factory=list, alias="sdkLanguages")
    ignore_repos: List[str] = Field(default_factory=list, alias="ignoreRepos")
    repo_criteria: List[RepoCriterionConfig] = Field(default_factory=list, alias="repoCriteria")
    genai_system_text: str = Field(default="", alias="genAiSystemText")
    genai_content_text: str = Field(default="", alias="genAiContentText")
    genai_criteria: List[GenAiCriterionConfig] = Field(default_factory=list, alias="genAiCriteria")

    @field_validator("sdk_languages", "ignore_repos")
    @classmethod
    def strip_entries(cls, v):
        """Drop blank entries and surrounding whitespace."""
        return [item.strip() for item in v if item and item.strip()]

    def build_genai_registry(self) -> CriteriaRegistry:
        """Build the registry of model-derived criteria."""
        return CriteriaRegistry.from_genai_config(
            [c.model_dump() for c in self.genai_criteria]
        )

    def build_repo_registry(self) -> CriteriaRegistry:
        """Build the registry of metadata-derived criteria."""
        return CriteriaRegistry.from_repo_config(
            [c.model_dump() for c in self.repo_criteria]
        )


def load_search_config(config_path: str = DEFAULT_CONFIG_PATH) -> SearchConfig:
    """
    Load and validate the run configuration from a YAML (or JSON) file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Validated SearchConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        raw = OmegaConf.to_container(OmegaConf.load(path), resolve=True)
    except (OmegaConfBaseException, OSError, ValueError) as e:
        raise ConfigurationError(f"Unable to read configuration {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration {path} must be a mapping")

    try:
        config = SearchConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration {path}: {e}") from e

    # Fail fast on bad criteria before any repository is touched
    config.build_repo_registry()
    config.build_genai_registry()

    logger.info(f"Loaded configuration from {path}: "
                f"{len(config.repo_criteria)} repo criteria, "
                f"{len(config.genai_criteria)} model criteria")
    return config


class RuntimeSettings(BaseSettings):
    """Credentials and transport settings from the environment."""

    openrouter_api_key: Optional[str] = Field(default=None)
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions")
    github_token: Optional[str] = Field(default=None)
    github_api_url: str = Field(default="https://api.github.com")
    request_timeout: int = Field(default=120)
    max_concurrency: int = Field(default=4, ge=1)
    request_delay_seconds: float = Field(default=0.2, ge=0.0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_environment(self) -> dict:
        """Report missing credentials without raising."""
        validation_results = {
            'valid': True,
            'missing': [],
            'warnings': []
        }

        if not self.openrouter_api_key:
            validation_results['missing'].append('OPENROUTER_API_KEY')
            validation_results['valid'] = False

        if not self.github_token:
            validation_results['warnings'].append(
                'GITHUB_TOKEN not set; GitHub API limited to 60 requests/hour'
            )

        return validation_results
