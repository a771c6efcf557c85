"""Text classification oracle: an opaque hosted scorer for text chunks."""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import tiktoken
from openai import OpenAI
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import Config
from .errors import OracleFailure
from .log import base_logger
from .types import OracleVerdict

logger = base_logger.getChild('oracle')

_FENCE = re.compile(r"```(?:json)?\n?|\n?```")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_json_reply(content: str) -> Optional[Dict[str, Any]]:
    """
    Parse a JSON object out of a model reply.

    Code fences are stripped; if the reply still does not parse, the
    outermost ``{...}`` block is tried.
    """
    cleaned = _FENCE.sub("", content).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        found = _JSON_OBJECT.search(cleaned)
        if not found:
            return None
        try:
            parsed = json.loads(found.group())
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def verdict_from_reply(parsed: Dict[str, Any]) -> OracleVerdict:
    """Build an OracleVerdict from a parsed reply, clamping the score."""
    raw_score = parsed.get("score", 0)
    score = float(raw_score) if isinstance(raw_score, (int, float)) else 0.0
    passages = parsed.get("passages") or []
    return OracleVerdict(
        score=min(100.0, max(0.0, score)),
        rationale=str(parsed.get("rationale") or parsed.get("reason") or ""),
        flagged_passages=[p for p in passages if isinstance(p, str) and p.strip()]
    )


class TextClassificationOracle(ABC):
    """Scores a chunk of text 0-100 and may flag verbatim passages."""

    @abstractmethod
    def classify(self, chunk: str) -> OracleVerdict:
        """
        Classify one chunk.

        Raises:
            OracleFailure: If no verdict could be produced
        """


class OpenAIClassificationOracle(TextClassificationOracle):
    """Oracle backed by an OpenAI-compatible chat completion API."""

    def __init__(self, config: Config, client: Optional[OpenAI] = None):
        """
        Initialize the oracle.

        Args:
            config: Configuration object with API settings
            client: Preconfigured client (built from config if not provided)
        """
        self.config = config

        logger.info("Initializing OpenAI client with:")
        logger.info(f"  Base URL: {config.openai_base_url}")
        api_key_display = ('***' + config.openai_api_key[-4:]
                           if len(config.openai_api_key) > 4
                           else '***')
        logger.info(f"  API Key: {api_key_display}")
        logger.info(f"  Model: {config.openai_model}")

        self.client = client or OpenAI(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url
        )
        self.model = config.openai_model
        self.max_chunk_tokens = config.oracle_max_chunk_tokens

        try:
            self.encoding = tiktoken.encoding_for_model(self.model)
        except KeyError:
            logger.warning(f"Unknown model {self.model}, using cl100k_base encoding")
            self.encoding = tiktoken.get_encoding("cl100k_base")

        self._classify_with_retry = retry(
            stop=stop_after_attempt(config.max_retries),
            wait=wait_exponential(multiplier=config.retry_delay, min=config.retry_delay, max=10),
            retry=retry_if_exception_type(OracleFailure),
            reraise=True
        )(self._classify_once)

    def truncate(self, chunk: str) -> str:
        """Cut a chunk down to the configured token budget."""
        tokens = self.encoding.encode(chunk)
        if len(tokens) <= self.max_chunk_tokens:
            return chunk
        logger.debug(f"Truncating chunk from {len(tokens)} to {self.max_chunk_tokens} tokens")
        return self.encoding.decode(tokens[:self.max_chunk_tokens])

    def _classify_once(self, chunk: str) -> OracleVerdict:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.config.oracle_instructions},
                    {"role": "user", "content": chunk},
                ],
                max_completion_tokens=600,
            )
        except Exception as e:
            logger.warning(f"Oracle call failed: {str(e)}")
            raise OracleFailure(f"Oracle call failed: {e}") from e

        content = response.choices[0].message.content or ""
        parsed = parse_json_reply(content)
        if parsed is None:
            logger.warning(f"Failed to parse oracle reply: {content[:200]}")
            raise OracleFailure("Oracle reply was not valid JSON")
        return verdict_from_reply(parsed)

    def classify(self, chunk: str) -> OracleVerdict:
        return self._classify_with_retry(self.truncate(chunk))


def average_verdict(verdicts: List[OracleVerdict]) -> Optional[OracleVerdict]:
    """Mean score over chunk verdicts, with all flagged passages kept."""
    if not verdicts:
        return None
    return OracleVerdict(
        score=sum(v.score for v in verdicts) / len(verdicts),
        rationale="; ".join(v.rationale for v in verdicts if v.rationale),
        flagged_passages=[p for v in verdicts for p in v.flagged_passages]
    )
