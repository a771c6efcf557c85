"""External match providers: outside sources of matched passages."""

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import Config
from .errors import ExternalProviderFailure
from .log import base_logger
from .types import ExternalMatch

logger = base_logger.getChild('providers')

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
QUOTA_STATUS_CODES = (403, 429)


def word_similarity(text1: str, text2: str) -> int:
    """
    Word-level Jaccard-style similarity between two texts, 0-100.

    Every word of ``text1`` present in ``text2`` counts toward the
    intersection, repeated words included.
    """
    words1 = text1.lower().split()
    words2 = set(text2.lower().split())
    intersection = sum(1 for word in words1 if word in words2)
    union = len(set(words1)) + len(words2) - intersection
    return min(100, max(0, round(intersection / max(union, 1) * 100)))


class ExternalMatchProvider(ABC):
    """Supplies matched passages from outside the fingerprint store."""

    name = "external"

    @abstractmethod
    def search(self, candidate_sentences: List[str]) -> List[ExternalMatch]:
        """Look up candidate sentences and return matches found elsewhere."""

    def is_enabled(self) -> bool:
        return True


class NullMatchProvider(ExternalMatchProvider):
    """Provider used when no external source is configured."""

    name = "none"

    def search(self, candidate_sentences: List[str]) -> List[ExternalMatch]:
        return []

    def is_enabled(self) -> bool:
        return False


class WebSearchMatchProvider(ExternalMatchProvider):
    """Looks sentences up with Google Custom Search, one query at a time."""

    name = "web_search"

    def __init__(
        self,
        config: Config,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the provider.

        Args:
            config: Configuration with search credentials and limits
            session: HTTP session (a new one if not provided)
            sleep: Function used for the fixed inter-call delay
        """
        self.config = config
        self.session = session or requests.Session()
        self.sleep = sleep

    def is_enabled(self) -> bool:
        return self.config.web_search_enabled()

    def _query(self, query: str) -> List[Dict[str, Any]]:
        """
        Run one search query.

        Raises:
            ExternalProviderFailure: On transport errors or non-2xx responses
        """
        params = {
            "key": self.config.google_search_api_key,
            "cx": self.config.google_search_cx,
            "q": query[:200],
        }
        try:
            response = self.session.get(
                GOOGLE_SEARCH_URL,
                params=params,
                timeout=self.config.search_timeout
            )
        except requests.RequestException as e:
            raise ExternalProviderFailure(f"Search failed: {e}") from e

        if response.status_code in QUOTA_STATUS_CODES:
            raise ExternalProviderFailure(
                f"Search quota exhausted: {response.status_code}",
                quota_exhausted=True
            )
        if not response.ok:
            raise ExternalProviderFailure(f"Search API error: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ExternalProviderFailure(f"Search API returned invalid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ExternalProviderFailure("Search API returned an unexpected payload")

        items = payload.get("items") or []
        return items[:5]

    def search(self, candidate_sentences: List[str]) -> List[ExternalMatch]:
        """
        Search the web for the longest-enough sentences.

        Calls are issued sequentially with a fixed delay. A failing query
        is skipped; quota exhaustion stops the remaining queries.

        Args:
            candidate_sentences: Sentences of the scanned document

        Returns:
            Matches above the similarity floor, highest first
        """
        if not self.is_enabled():
            logger.info("Web search not enabled - skipping")
            return []

        sample = [
            s for s in candidate_sentences
            if len(s) > self.config.search_min_sentence_length
        ][:self.config.search_max_queries]

        results: List[ExternalMatch] = []
        for i, sentence in enumerate(sample):
            if i > 0:
                self.sleep(self.config.search_delay)

            query = f'"{sentence[:self.config.search_query_max_chars]}"'
            try:
                items = self._query(query)
            except ExternalProviderFailure as e:
                logger.warning(f"Web search query failed: {e}")
                if e.quota_exhausted:
                    break
                continue

            logger.debug(f"Found {len(items)} results for query")
            for item in items:
                results.append(ExternalMatch(
                    source_url=item.get("link") or None,
                    source_title=item.get("title") or None,
                    matched_text=sentence,
                    similarity=word_similarity(sentence, item.get("snippet", ""))
                ))

        results = [r for r in results if r.similarity > self.config.search_min_similarity]
        results.sort(key=lambda r: r.similarity, reverse=True)
        return results[:self.config.search_max_results]
