from functools import lru_cache
import json
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_list_value(value: str) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return []
        try:
            parsed = json.loads(raw)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except json.JSONDecodeError:
            pass
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )

    docs_enabled: bool = Field(default=True)
    openapi_enabled: bool = Field(default=True)
    expose_error_details: bool = False

    enable_voice_expense: bool = True
    enable_ai_expense_extract: bool = True

    cors_allow_origins_raw: str = Field(
        default="",
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS"),
    )
    cors_allow_methods_raw: str = Field(
        default="GET,POST,OPTIONS",
        validation_alias=AliasChoices("CORS_ALLOW_METHODS"),
    )
    cors_allow_headers_raw: str = Field(
        default="Authorization,Content-Type,Accept",
        validation_alias=AliasChoices("CORS_ALLOW_HEADERS"),
    )

    # --- AI provider ---
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    groq_api_key: str = ""
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )

    ai_allowed_providers_raw: str = Field(
        default="mock,claude,openai,groq,gemini",
        validation_alias=AliasChoices("AI_ALLOWED_PROVIDERS"),
    )
    ai_allowed_models_raw: str = Field(
        default="",
        validation_alias=AliasChoices("AI_ALLOWED_MODELS"),
    )
    ai_expense_provider: str = "mock"
    ai_expense_model: str = ""
    enable_ai_overrides: bool = False
    ai_temperature: float = 0.1
    ai_max_tokens: int = 512
    # Hard wall-clock cap, matches the speech capture timeout on the client.
    ai_timeout_seconds: float = 15.0
    ai_debug_store_raw: bool = False

    # --- Extraction pipeline ---
    expense_lexicon_path: str = ""
    expense_accept_threshold: float = 0.8
    expense_retry_threshold: float = 0.6
    expense_max_retries: int = 2
    expense_max_amount: float = 100000.0
    expense_category_min_score: float = 0.5
    expense_keyword_weight: float = 1.0
    expense_action_verb_weight: float = 1.5
    expense_bigram_bonus: float = 2.0
    expense_meal_time_bonus: float = 0.3
    expense_rule_confidence: float = 0.9
    expense_fallback_confidence: float = 0.6
    expense_ai_default_confidence: float = 0.7

    @field_validator(
        "expense_accept_threshold",
        "expense_retry_threshold",
        "expense_rule_confidence",
        "expense_fallback_confidence",
        "expense_ai_default_confidence",
    )
    @classmethod
    def _unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            msg = f"Threshold must be 0.0-1.0, got {v}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _check_limits(self) -> "Settings":
        if self.expense_max_amount <= 0:
            raise ValueError("EXPENSE_MAX_AMOUNT must be positive")
        if self.expense_max_retries < 0:
            raise ValueError("EXPENSE_MAX_RETRIES must be >= 0")
        if self.ai_timeout_seconds <= 0:
            raise ValueError("AI_TIMEOUT_SECONDS must be positive")
        return self

    @property
    def cors_allow_origins(self) -> list[str]:
        return _parse_list_value(self.cors_allow_origins_raw)

    @property
    def cors_allow_methods(self) -> list[str]:
        return _parse_list_value(self.cors_allow_methods_raw)

    @property
    def cors_allow_headers(self) -> list[str]:
        return _parse_list_value(self.cors_allow_headers_raw)

    @property
    def ai_allowed_providers(self) -> list[str]:
        return [p.lower() for p in _parse_list_value(self.ai_allowed_providers_raw)]

    @property
    def ai_allowed_models(self) -> dict[str, list[str]]:
        """``AI_ALLOWED_MODELS`` as JSON: ``{"claude": ["claude-3-5-haiku-20241022"]}``."""
        raw = self.ai_allowed_models_raw.strip()
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        if not isinstance(parsed, dict):
            return {}
        return {
            str(provider).lower(): _parse_list_value(models) if isinstance(models, str) else [str(m) for m in models]
            for provider, models in parsed.items()
        }


@lru_cache

def get_settings() -> Settings:
    return Settings()
