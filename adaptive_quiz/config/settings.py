"""Application settings and configuration."""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

# Load .env file if present
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM provider
    llm_provider: Literal["bedrock", "anthropic"] = Field(
        default="bedrock",
        description="Chat model backend used for generation",
        validation_alias="LLM_PROVIDER",
    )

    # AWS CONFIG (only needed for the bedrock provider; boto3 also reads these)
    aws_api_key_id: str | None = Field(
        default=None,
        description="AWS API key ID",
        validation_alias="AWS_ACCESS_KEY_ID",
    )
    aws_api_key_secret: str | None = Field(
        default=None,
        description="AWS API key",
        validation_alias="AWS_SECRET_ACCESS_KEY",
    )
    aws_default_region: str | None = Field(
        default=None,
        description="AWS API region",
        validation_alias="AWS_DEFAULT_REGION",
    )

    # Model Configuration
    model_name: str = Field(
        default="anthropic.claude-3-7-sonnet-20250219-v1:0",
        description="Model to use (Bedrock model ID or Anthropic model name)",
        validation_alias="MODEL_NAME",
    )

    # Generation Settings
    question_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Temperature for question generation",
        validation_alias="QUESTION_TEMPERATURE",
    )
    question_max_tokens: int = Field(
        default=1024,
        ge=1,
        description="Token cap for question generation",
        validation_alias="QUESTION_MAX_TOKENS",
    )

    grading_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Temperature for answer feedback",
        validation_alias="GRADING_TEMPERATURE",
    )
    grading_max_tokens: int = Field(
        default=512,
        ge=1,
        description="Token cap for answer feedback",
        validation_alias="GRADING_MAX_TOKENS",
    )

    evolution_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Temperature for topic evolution analysis",
        validation_alias="EVOLUTION_TEMPERATURE",
    )
    evolution_max_tokens: int = Field(
        default=512,
        ge=1,
        description="Token cap for topic evolution analysis",
        validation_alias="EVOLUTION_MAX_TOKENS",
    )

    max_context_questions: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Existing questions shown to the model to avoid duplicates",
        validation_alias="MAX_CONTEXT_QUESTIONS",
    )

    default_question_type: Literal[
        "mcq", "fill_blank", "short_answer", "long_answer", "true_false"
    ] = Field(
        default="mcq",
        description="Question type requested when generating during a quiz",
        validation_alias="DEFAULT_QUESTION_TYPE",
    )

    # Adaptation Settings
    adapt_min_answers: int = Field(
        default=5,
        ge=1,
        description="Answers required before difficulty is reconsidered",
        validation_alias="ADAPT_MIN_ANSWERS",
    )

    adapt_raise_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Accuracy above which difficulty steps up",
        validation_alias="ADAPT_RAISE_THRESHOLD",
    )

    adapt_lower_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Accuracy below which difficulty steps down",
        validation_alias="ADAPT_LOWER_THRESHOLD",
    )

    initial_difficulty: Literal["easy", "medium", "hard"] = Field(
        default="medium",
        description="Difficulty a new quiz session starts at",
        validation_alias="INITIAL_DIFFICULTY",
    )

    # Storage Settings
    database_url: str = Field(
        default="sqlite:///adaptive_quiz.db",
        description="SQLAlchemy database URL",
        validation_alias="DATABASE_URL",
    )

    log_level: str = Field(
        default="INFO",
        description="Log level for the CLI",
        validation_alias="LOG_LEVEL",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        """Lower threshold may not sit above the raise threshold."""
        if self.adapt_lower_threshold > self.adapt_raise_threshold:
            raise ValueError(
                "ADAPT_LOWER_THRESHOLD must not exceed ADAPT_RAISE_THRESHOLD"
            )
        return self


# This is loaded the first time and then cached for further use
@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings object with loaded configuration
    """
    return Settings()
