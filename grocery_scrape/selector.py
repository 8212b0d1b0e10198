"""Candidate selection: which listing stubs are worth a detail fetch.

A selector takes the listing stubs and the user's query and returns the
indices of the best matches, best first. The LLM-backed selector is
optional; whenever it is unconfigured, errors out, or answers with
nothing usable, selection degrades to the first stub.
"""

import json
import os
import re
from typing import Any, List, Optional, Protocol, Sequence

from grocery_scrape.config import MAX_SELECTED_CANDIDATES, SELECTOR_MODEL, SELECTOR_TIMEOUT
from grocery_scrape.logging_config import get_logger, log_scrape_event
from grocery_scrape.models import ProductStub
from grocery_scrape.prices import compute_per100g

__all__ = [
    "CandidateSelector",
    "FirstCandidateSelector",
    "LLMCandidateSelector",
    "build_selection_prompt",
    "parse_indices",
    "select_candidates",
    "get_default_selector",
]

logger = get_logger("selector")

FALLBACK_SELECTION = [0]
INDEX_ARRAY_RE = re.compile(r"\[[\d,\s]*\]")


class CandidateSelector(Protocol):
    def select(self, candidates: Sequence[ProductStub], query: str) -> List[int]:
        ...


class FirstCandidateSelector:
    """Deterministic selector: always the first listing stub."""

    def select(self, candidates: Sequence[ProductStub], query: str) -> List[int]:
        return list(FALLBACK_SELECTION)


def build_selection_prompt(candidates: Sequence[ProductStub], query: str) -> str:
    """Prompt listing each candidate with weight, price and per-100g cost."""
    lines = []
    for i, c in enumerate(candidates):
        line = f"{i}. {c.name}"
        if c.weight:
            line += f" ({c.weight})"
        if c.price > 0:
            line += f" £{c.price:.2f}"
        per100g = compute_per100g(c.price, c.weight)
        if per100g:
            line += f" = £{per100g:.2f}/100g"
        lines.append(line)

    return (
        f'UK grocery search: "{query}"\n\n'
        f"Candidates:\n" + "\n".join(lines) + "\n\n"
        "Select the best 3-4 products that most closely match the search query. Rules:\n"
        '- Match the specific descriptor precisely (e.g. "mature cheddar" means mature cheddar, '
        "not mild or extra mature)\n"
        "- Any brand is fine: own-brand and national brands are equally welcome\n"
        "- Exclude dips, sauces, spreads, composites and products that merely contain "
        "the ingredient as a component\n"
        "- Prefer better value (cheaper per 100g) among equally relevant products\n"
        "Reply ONLY with a JSON array of 3-4 indices e.g. [0,2,3] or [1,2,3,4]"
    )


def parse_indices(raw: str, candidate_count: int) -> List[int]:
    """Pull the first JSON integer array out of ``raw`` and keep valid indices."""
    match = INDEX_ARRAY_RE.search(raw or "")
    if not match:
        return []
    try:
        values = json.loads(match.group(0))
    except json.JSONDecodeError:
        return []

    indices: List[int] = []
    for value in values:
        if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < candidate_count:
            if value not in indices:
                indices.append(value)
    return indices[:MAX_SELECTED_CANDIDATES]


def _get_openai_client():
    """Get OpenAI client (lazy initialization), bounded by SELECTOR_TIMEOUT with no retries."""
    from openai import OpenAI
    return OpenAI(timeout=SELECTOR_TIMEOUT, max_retries=0)


class LLMCandidateSelector:
    """Ask an OpenAI model to rank candidates.

    Raises on API or parsing failure; select_candidates turns that into the
    first-stub fallback.
    """

    def __init__(self, client: Optional[Any] = None, model: str = SELECTOR_MODEL):
        self._client = client
        self.model = model

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = _get_openai_client()
        return self._client

    def select(self, candidates: Sequence[ProductStub], query: str) -> List[int]:
        prompt = build_selection_prompt(candidates, query)
        log_scrape_event("llm_call_selector", {"model": self.model, "query": query,
                                                "candidates": len(candidates)})

        resp = self.client.responses.create(model=self.model, input=prompt)

        raw = ""
        for item in resp.output:
            if getattr(item, "content", None):
                raw = item.content[0].text  # type: ignore[union-attr]
                break

        log_scrape_event("llm_response_selector", {"model": self.model, "raw_response": raw})
        indices = parse_indices(raw, len(candidates))
        if not indices:
            raise ValueError(f"Selector returned no usable indices: {raw!r}")
        return indices


def select_candidates(
    selector: Optional[CandidateSelector],
    candidates: Sequence[ProductStub],
    query: str,
) -> List[int]:
    """Run a selector and enforce the contract.

    Always returns a non-empty list of unique, in-range indices (at most
    MAX_SELECTED_CANDIDATES). Any failure falls back to [0].
    """
    if selector is None or len(candidates) <= 1:
        return list(FALLBACK_SELECTION)

    try:
        raw_indices = selector.select(candidates, query)
    except Exception as e:
        logger.warning(f"Candidate selection failed ({e}), using first candidate")
        log_scrape_event("selector_fallback", {"query": query, "error": str(e)})
        return list(FALLBACK_SELECTION)

    indices: List[int] = []
    for i in raw_indices or []:
        if isinstance(i, int) and not isinstance(i, bool) and 0 <= i < len(candidates) and i not in indices:
            indices.append(i)
    if not indices:
        log_scrape_event("selector_fallback", {"query": query, "error": "empty selection"})
        return list(FALLBACK_SELECTION)
    return indices[:MAX_SELECTED_CANDIDATES]


def get_default_selector() -> CandidateSelector:
    """LLM selector when OPENAI_API_KEY is set, otherwise the first-stub selector."""
    if os.getenv("OPENAI_API_KEY"):
        return LLMCandidateSelector()
    return FirstCandidateSelector()
