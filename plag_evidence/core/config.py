"""Configuration module for plag-evidence."""

import os
from typing import Literal
from pydantic import BaseModel, Field, ConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


class Config(BaseModel):
    """Configuration for the originality evidence engine."""

    # OpenAI API settings (text classification oracle)
    openai_api_key: str = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", ""),
        description="API key for OpenAI or compatible service"
    )
    openai_base_url: str = Field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        description="Base URL for OpenAI-compatible API"
    )
    openai_model: str = Field(
        default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o"),
        description="Chat model used by the text classification oracle"
    )
    oracle_enabled: bool = Field(
        default_factory=lambda: os.getenv("PLAG_ORACLE_ENABLED", "").lower() in ("1", "true", "yes"),
        description="Whether the text classification oracle is consulted"
    )
    oracle_instructions: str = Field(
        default_factory=lambda: os.getenv(
            "PLAG_ORACLE_INSTRUCTIONS",
            "Rate how likely the passage is copied from an external source. "
            'Respond with ONLY valid JSON: {"score": number 0-100, "rationale": string, '
            '"passages": [verbatim copied passages]}'
        ),
        description="Instruction text sent to the oracle with every chunk"
    )
    oracle_max_chunk_tokens: int = Field(
        default=1500,
        gt=0,
        description="Token cap for a single chunk sent to the oracle"
    )
    oracle_chunk_words: int = Field(
        default=500,
        gt=0,
        description="Words per chunk when splitting text for the oracle"
    )
    oracle_max_chunks: int = Field(
        default=8,
        gt=0,
        description="Maximum number of chunks classified per scan"
    )

    # ChromaDB settings
    chroma_persist_dir: str = Field(
        default_factory=lambda: os.getenv("CHROMA_PERSIST_DIR", "./chroma_db"),
        description="Directory for ChromaDB persistence"
    )
    fingerprint_collection: str = Field(
        default="document_fingerprints",
        description="ChromaDB collection holding document fingerprints"
    )

    # Segmentation settings
    min_sentence_length: int = Field(
        default=20,
        ge=0,
        description="Minimum normalized length of a sentence to be fingerprinted"
    )

    # Cross-document matching settings
    candidate_window: int = Field(
        default_factory=lambda: _env_int("PLAG_CANDIDATE_WINDOW", 500),
        gt=0,
        description="Number of most recent fingerprints compared per scan"
    )
    materiality_threshold: int = Field(
        default_factory=lambda: _env_int("PLAG_MATERIALITY_THRESHOLD", 10),
        ge=0,
        le=100,
        description="Minimum match percentage for a candidate to be reported"
    )
    top_k_matches: int = Field(
        default=5,
        gt=0,
        description="Number of internal matches returned"
    )

    # Scoring settings
    score_policy: Literal["max", "weighted"] = Field(
        default_factory=lambda: os.getenv("PLAG_SCORE_POLICY", "max"),
        description="How coverage and oracle scores are combined"
    )
    oracle_weight: float = Field(
        default_factory=lambda: _env_float("PLAG_ORACLE_WEIGHT", 0.5),
        ge=0.0,
        le=1.0,
        description="Oracle share of the final score under the weighted policy"
    )

    # Web search (external match provider) settings
    google_search_api_key: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CUSTOM_SEARCH_API_KEY", ""),
        description="API key for Google Custom Search"
    )
    google_search_cx: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CUSTOM_SEARCH_CX", ""),
        description="Search engine id for Google Custom Search"
    )
    search_delay: float = Field(
        default=0.2,
        ge=0.0,
        description="Fixed delay between web search calls in seconds"
    )
    search_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Timeout for a single web search call in seconds"
    )
    search_max_queries: int = Field(
        default=5,
        gt=0,
        description="Maximum number of sentences searched per scan"
    )
    search_min_sentence_length: int = Field(
        default=50,
        ge=0,
        description="Sentences shorter than this are not searched"
    )
    search_query_max_chars: int = Field(
        default=150,
        gt=0,
        description="Maximum characters of a sentence used as a query"
    )
    search_min_similarity: int = Field(
        default=30,
        ge=0,
        le=100,
        description="Results at or below this similarity are dropped"
    )
    search_max_results: int = Field(
        default=10,
        gt=0,
        description="Maximum number of external matches kept"
    )

    # Processing settings
    max_retries: int = Field(
        default=2,
        gt=0,
        description="Maximum attempts for oracle calls"
    )
    retry_delay: float = Field(
        default=1.0,
        description="Base delay between retries in seconds"
    )
    scan_workers: int = Field(
        default=4,
        gt=0,
        description="Worker threads for background scans"
    )

    def validate_api_key(self) -> bool:
        """Check if API key is configured."""
        return bool(self.openai_api_key)

    def web_search_enabled(self) -> bool:
        """Check if web search credentials are configured."""
        return bool(self.google_search_api_key and self.google_search_cx)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid"
    )
