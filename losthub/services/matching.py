"""Match ranking over the opposite-status candidate population.

A query vector is scored against every approved, unresolved item of the target
status. Candidates under the threshold are dropped (raw score), the rest are
ordered by score descending then item id, truncated to `max_matches`, and
reported with the score rounded to 4 places.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from config import settings
from . import item_store
from .similarity import cosine_similarity
from losthub.scripts.logging_config import get_logger, log_match_summary

logger = get_logger("matching")

CandidateFetcher = Callable[[str], List[Dict]]


class MatchOptions(BaseModel):
    threshold: float = Field(ge=0.0, le=1.0)
    max_matches: int = Field(gt=0)
    embedding_dim: int = Field(gt=0)

    @classmethod
    def from_settings(cls) -> "MatchOptions":
        return cls(
            threshold=settings.MATCH_SIMILARITY_THRESHOLD,
            max_matches=settings.MATCH_MAX_RESULTS,
            embedding_dim=settings.EMBEDDING_DIM,
        )


def rank_candidates(query_vector: Sequence[float], candidates: List[Dict], options: MatchOptions) -> List[Dict]:
    scored = []
    for cand in candidates:
        vec = cand.get("textEmbedding")
        if not vec or len(vec) != len(query_vector):
            continue
        score = cosine_similarity(query_vector, vec)
        if score < options.threshold:
            continue
        scored.append((score, cand))

    scored.sort(key=lambda e: (-e[0], str(e[1].get("id") or "")))

    out = []
    for score, cand in scored[:options.max_matches]:
        match = {"id": cand.get("id"), "score": round(score, 4)}
        match.update({k: v for k, v in cand.items() if k not in match})
        out.append(match)
    return out


def get_potential_matches(
    query_vector: Optional[Sequence[float]],
    target_status: str,
    options: Optional[MatchOptions] = None,
    fetch: Optional[CandidateFetcher] = None,
    query_item_id: Optional[str] = None,
) -> List[Dict]:
    """Ranked matches `{id, score, ...item fields}` for `query_vector`.

    Repository errors from `fetch` propagate.
    """
    options = options or MatchOptions.from_settings()
    if not query_vector:
        return []
    if len(query_vector) != options.embedding_dim:
        logger.warning("match_skip_dim_mismatch item=%s dim=%d expected=%d",
                       query_item_id or "-", len(query_vector), options.embedding_dim)
        return []

    fetch = fetch or item_store.fetch_candidates
    candidates = fetch(target_status)
    matches = rank_candidates(query_vector, candidates, options)
    log_match_summary(query_item_id, target_status, len(candidates), len(matches),
                      matches[0]["score"] if matches else None, logger=logger)
    return matches
