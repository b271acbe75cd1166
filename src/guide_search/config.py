"""Centralized configuration for guide-search using Pydantic Settings."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from guide_search.domain.model import SearchField


class Settings(BaseSettings):
    """Tunable ranking defaults and ambient settings.

    Weights and thresholds are defaults, not compatibility constants. They can
    be overridden with ``GUIDE_SEARCH_*`` environment variables or a ``.env``
    file, but the engine itself only ever sees the constructed instance.
    """

    model_config = SettingsConfigDict(
        env_prefix="GUIDE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Field weights
    title_weight: float = Field(default=5.0, gt=0, description="Weight of title postings")
    keywords_weight: float = Field(default=3.0, gt=0, description="Weight of keyword postings")
    category_weight: float = Field(default=2.0, gt=0, description="Weight of the indexed category label")
    description_weight: float = Field(default=1.0, gt=0, description="Weight of description postings")

    # Matching tiers
    prefix_similarity: float = Field(
        default=0.85, gt=0.0, lt=1.0, description="Similarity assigned to a prefix hit on an index token"
    )
    min_prefix_length: int = Field(default=2, ge=1, description="Shortest query token allowed to prefix-match")
    fuzzy_similarity_floor: float = Field(
        default=0.4,
        ge=0.0,
        lt=1.0,
        description="Edit-distance matches below this similarity are ignored",
    )
    score_floor: float = Field(default=0.5, ge=0.0, description="Records scoring below this are excluded")

    # Query controller
    debounce_ms: int = Field(default=130, ge=0, le=1000, description="Keystroke debounce delay in milliseconds")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_weight_order(self) -> "Settings":
        # A title hit must always outrank the same hit in the description
        if self.title_weight <= self.description_weight:
            raise ValueError(
                "GUIDE_SEARCH_TITLE_WEIGHT must be greater than GUIDE_SEARCH_DESCRIPTION_WEIGHT "
                f"(got {self.title_weight} <= {self.description_weight})"
            )
        return self

    def field_weights(self) -> dict[SearchField, float]:
        """Return the static weight applied to postings of each field."""
        return {
            SearchField.TITLE: self.title_weight,
            SearchField.KEYWORDS: self.keywords_weight,
            SearchField.CATEGORY: self.category_weight,
            SearchField.DESCRIPTION: self.description_weight,
        }

    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000
