"""Web search tool for retrieving information from the web."""

from __future__ import annotations

import asyncio
import os
import re
from typing import Any

import aiohttp
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from taskagents.tools.base import (
    PRIORITY_DEFERRED,
    PRIORITY_PREFERRED,
    BaseTool,
    ParameterType,
    ToolParameter,
)

logger = structlog.get_logger()

GOOGLE_API_URL = "https://www.googleapis.com/customsearch/v1"
BING_API_URL = "https://api.bing.microsoft.com/v7.0/search"
DEFAULT_NUM_RESULTS = 5
MAX_RESULTS = 10

QUERY_COMMANDS_PATTERN = re.compile(
    r"\b(search for|find|lookup|google|what is|who is|where is|when is)\b", re.IGNORECASE
)
POLITENESS_PATTERN = re.compile(r"\b(please|can you|could you|would you)\b", re.IGNORECASE)
NUM_RESULTS_PATTERN = re.compile(r"(\d+)\s*(results?|items?|links?)", re.IGNORECASE)
FOR_SEARCH_PATTERN = re.compile(r"^(for|to)?\s*search:?\s*", re.IGNORECASE)
QUESTION_WORD_PATTERN = re.compile(r"\b(what|who|where|when)\b", re.IGNORECASE)


class SearchUnavailableError(Exception):
    """Raised when the search backend cannot be reached."""


class WebSearchTool(BaseTool):
    """A web search tool that retrieves search results.

    Talks to Google Custom Search or Bing when an API key is configured. In
    mock mode it returns canned results, which can be set per query for
    experiments and tests.
    """

    KEYWORDS = ("search", "find", "lookup", "google", "bing", "web", "site", "news", "wikipedia")

    def __init__(
        self,
        api_key: str | None = None,
        search_engine: str = "google",
        search_engine_id: str | None = None,
        mock_mode: bool | None = None,
        timeout_seconds: float = 20.0,
    ) -> None:
        self.api_key = api_key or os.environ.get("GOOGLE_API_KEY") or os.environ.get("SEARCH_API_KEY")
        self.search_engine = search_engine
        self.search_engine_id = search_engine_id or os.environ.get("GOOGLE_SEARCH_ENGINE_ID")
        self.mock_mode = (not self.api_key) if mock_mode is None else mock_mode
        self.timeout_seconds = timeout_seconds
        self._mock_results: dict[str, list[dict[str, str]]] = {}
        self._log = logger.bind(component="web_search", engine=search_engine)

    @property
    def name(self) -> str:
        return "web_search"

    @property
    def description(self) -> str:
        return "Searches the internet for current information"

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="query",
                type=ParameterType.STRING,
                description="Search query to find information about",
                required=True,
            ),
            ToolParameter(
                name="num_results",
                type=ParameterType.INTEGER,
                description="Number of results to return (default: 5)",
                required=False,
                default=DEFAULT_NUM_RESULTS,
            ),
        ]

    def set_mock_results(self, query: str, results: list[dict[str, str]]) -> None:
        """Set mock results for a specific query (for testing)."""
        self._mock_results[query.lower()] = results

    def match(self, prompt: str) -> bool:
        return self.contains_keywords(prompt, self.KEYWORDS)

    def priority(self, prompt: str) -> int:
        if "search" in prompt or QUESTION_WORD_PATTERN.search(prompt):
            return PRIORITY_PREFERRED
        return PRIORITY_DEFERRED

    async def call(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any] | str:
        """Execute the web search."""
        params = self.extract_parameters(prompt or "")
        query = params["query"]

        if not query:
            return "No search query found"

        try:
            if self.mock_mode:
                results = self._mock_search(query, params["num_results"])
            else:
                results = await self._search_with_retry(query, params["num_results"])
        except (SearchUnavailableError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._log.warning("Search failed", query=query, error=str(e))
            return {
                "query": query,
                "error": str(e),
                "results": [],
                "formatted": (
                    f"Search unavailable for '{query}'. "
                    "Please try again later or rephrase your query."
                ),
            }

        return self.format_search_results(query, results)

    def extract_parameters(self, prompt: str) -> dict[str, Any]:
        return {
            "query": self.extract_query(prompt),
            "num_results": self.extract_num_results(prompt),
        }

    @staticmethod
    def extract_query(prompt: str) -> str:
        """Strip command words and politeness from a prompt."""
        if not prompt.strip():
            return ""
        query = QUERY_COMMANDS_PATTERN.sub("", prompt)
        query = POLITENESS_PATTERN.sub("", query).strip()
        query = NUM_RESULTS_PATTERN.sub("", query).strip()
        query = FOR_SEARCH_PATTERN.sub("", query, count=1)
        query = re.sub(r",\s*,", ",", query)
        query = re.sub(r"\s+", " ", query)
        return re.sub(r"[,;]\s*$", "", query).strip()

    @staticmethod
    def extract_num_results(prompt: str) -> int:
        match = NUM_RESULTS_PATTERN.search(prompt)
        if match and 1 <= int(match.group(1)) <= MAX_RESULTS:
            return int(match.group(1))
        return DEFAULT_NUM_RESULTS

    @staticmethod
    def format_search_results(query: str, results: list[dict[str, str]]) -> dict[str, Any]:
        if not results:
            return {
                "query": query,
                "results": [],
                "formatted": f"No results found for '{query}'",
            }

        entries = []
        for index, result in enumerate(results, start=1):
            title = (result.get("title") or "").strip() or "Untitled"
            snippet = (result.get("snippet") or "").strip() or "No description available"
            url = (result.get("url") or "").strip()
            entries.append(f"{index}. {title}\n   {snippet}\n   {url}")

        return {
            "query": query,
            "results": results,
            "count": len(results),
            "formatted": f"Search results for '{query}':\n\n" + "\n\n".join(entries),
        }

    def _mock_search(self, query: str, num_results: int) -> list[dict[str, str]]:
        """Return mock search results for testing."""
        query_lower = query.lower()
        if query_lower in self._mock_results:
            return self._mock_results[query_lower][:num_results]

        return [
            {
                "title": f"Result {i + 1} for: {query}",
                "snippet": f"This is a mock search result snippet for the query '{query}'.",
                "url": f"https://example.com/result-{i + 1}",
            }
            for i in range(num_results)
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type((aiohttp.ClientConnectionError, asyncio.TimeoutError)),
        reraise=True,
    )
    async def _search_with_retry(self, query: str, num_results: int) -> list[dict[str, str]]:
        if self.search_engine == "bing":
            url = BING_API_URL
            headers = {"Ocp-Apim-Subscription-Key": self.api_key or ""}
            params: dict[str, Any] = {
                "q": query,
                "count": num_results,
                "safeSearch": "Moderate",
                "responseFilter": "Webpages",
            }
        else:
            if not self.search_engine_id:
                raise SearchUnavailableError("Google search engine id is not configured")
            url = GOOGLE_API_URL
            headers = {}
            params = {
                "key": self.api_key,
                "cx": self.search_engine_id,
                "q": query,
                "num": min(num_results, MAX_RESULTS),
                "safe": "active",
            }

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, headers=headers, params=params) as response:
                if response.status >= 500:
                    raise aiohttp.ClientConnectionError(f"Search API returned status {response.status}")
                if response.status != 200:
                    raise SearchUnavailableError(f"Search API returned status {response.status}")
                data = await response.json()

        return self._parse_search_response(data)[:num_results]

    @staticmethod
    def _parse_search_response(data: dict[str, Any]) -> list[dict[str, str]]:
        """Parse Google or Bing responses into title/snippet/url dicts."""
        items = data.get("items") or data.get("webPages", {}).get("value", [])

        results = []
        for item in items:
            result = {
                "title": item.get("title", item.get("name", "")),
                "snippet": item.get("snippet", "No description available"),
                "url": item.get("link", item.get("url", "")),
            }
            if result["title"] and result["url"]:
                results.append(result)

        return results
