import math

import pytest

from losthub.services import matching
from losthub.services.matching import MatchOptions, get_potential_matches

OPTS = MatchOptions(threshold=0.8, max_matches=5, embedding_dim=3)


def _vec_with_score(score):
    """Unit vector whose cosine with [1, 0, 0] is `score`."""
    return [score, math.sqrt(1 - score * score), 0.0]


def _fetch(candidates):
    seen = []

    def fetch(status):
        seen.append(status)
        return [dict(c) for c in candidates]
    fetch.seen = seen
    return fetch


def test_identical_vector_is_a_perfect_match():
    fetch = _fetch([{"id": "f1", "name": "Blue wallet", "status": "found", "textEmbedding": [1, 0, 0]}])
    matches = get_potential_matches([1, 0, 0], "found", OPTS, fetch)
    assert len(matches) == 1
    assert matches[0]["id"] == "f1"
    assert matches[0]["score"] == 1.0
    assert matches[0]["name"] == "Blue wallet"
    assert fetch.seen == ["found"]


def test_orthogonal_candidate_is_not_a_match():
    fetch = _fetch([{"id": "f1", "textEmbedding": [0, 1, 0]}])
    assert get_potential_matches([1, 0, 0], "found", OPTS, fetch) == []


def test_ties_are_capped_and_ordered_by_id():
    ids = ["f6", "f3", "f1", "f5", "f2", "f4"]
    fetch = _fetch([{"id": i, "textEmbedding": _vec_with_score(0.95)} for i in ids])
    matches = get_potential_matches([1, 0, 0], "found", OPTS, fetch)
    assert [m["id"] for m in matches] == ["f1", "f2", "f3", "f4", "f5"]
    assert all(m["score"] == 0.95 for m in matches)


def test_results_sorted_capped_and_above_threshold():
    scores = [0.81, 0.99, 0.5, 0.93, 0.85, 0.0, 0.97, 0.88, 0.79]
    fetch = _fetch([{"id": f"c{i}", "textEmbedding": _vec_with_score(s)} for i, s in enumerate(scores)])
    matches = get_potential_matches([1, 0, 0], "found", OPTS, fetch)
    got = [m["score"] for m in matches]
    assert len(matches) == 5
    assert all(s >= 0.8 for s in got)
    assert got == sorted(got, reverse=True)
    assert got == [0.99, 0.97, 0.93, 0.88, 0.85]


def test_threshold_compares_raw_score_before_rounding():
    fetch = _fetch([{"id": "edge", "textEmbedding": _vec_with_score(0.79996)}])
    assert get_potential_matches([1, 0, 0], "found", OPTS, fetch) == []


def test_score_rounded_to_four_places():
    fetch = _fetch([{"id": "f1", "textEmbedding": _vec_with_score(0.912345678)}])
    matches = get_potential_matches([1, 0, 0], "found", OPTS, fetch)
    assert matches[0]["score"] == 0.9123


def test_empty_and_mismatched_candidate_vectors_are_skipped():
    fetch = _fetch([
        {"id": "empty", "textEmbedding": []},
        {"id": "missing"},
        {"id": "short", "textEmbedding": [1, 0]},
        {"id": "ok", "textEmbedding": [1, 0, 0]},
    ])
    matches = get_potential_matches([1, 0, 0], "found", OPTS, fetch)
    assert [m["id"] for m in matches] == ["ok"]


def test_non_finite_candidate_vectors_are_excluded():
    fetch = _fetch([
        {"id": "nan", "textEmbedding": [float("nan"), 0, 0]},
        {"id": "inf", "textEmbedding": [float("inf"), 1, 0]},
        {"id": "ok", "textEmbedding": [1, 0, 0]},
    ])
    matches = get_potential_matches([1, 0, 0], "found", OPTS, fetch)
    assert [m["id"] for m in matches] == ["ok"]
    assert all(m["score"] >= 0.8 for m in matches)


def test_no_candidates_returns_empty_list():
    assert get_potential_matches([1, 0, 0], "lost", OPTS, _fetch([])) == []


def test_empty_or_wrong_dim_query_does_not_hit_repository():
    fetch = _fetch([{"id": "f1", "textEmbedding": [1, 0, 0]}])
    assert get_potential_matches([], "found", OPTS, fetch) == []
    assert get_potential_matches([1, 0], "found", OPTS, fetch) == []
    assert fetch.seen == []


def test_repository_failure_propagates():
    def broken(status):
        raise RuntimeError("firestore unavailable")
    with pytest.raises(RuntimeError):
        get_potential_matches([1, 0, 0], "found", OPTS, broken)


def test_candidate_retrieval_filters_status_approval_and_resolution(fake_db):
    vec = [1.0, 0.0, 0.0]
    fake_db.seed("items", "ok", {"status": "found", "isApproved": True, "isResolved": False, "textEmbedding": vec})
    fake_db.seed("items", "pending", {"status": "found", "isApproved": False, "isResolved": False, "textEmbedding": vec})
    fake_db.seed("items", "resolved", {"status": "found", "isApproved": True, "isResolved": True, "textEmbedding": vec})
    fake_db.seed("items", "same-status", {"status": "lost", "isApproved": True, "isResolved": False, "textEmbedding": vec})

    matches = get_potential_matches(vec, "found", OPTS)
    assert [m["id"] for m in matches] == ["ok"]


def test_options_default_to_settings(small_dim, monkeypatch):
    monkeypatch.setattr(matching.settings, "MATCH_MAX_RESULTS", 2)
    opts = MatchOptions.from_settings()
    assert (opts.threshold, opts.max_matches, opts.embedding_dim) == (0.8, 2, 3)


def test_options_reject_out_of_range_values():
    with pytest.raises(ValueError):
        MatchOptions(threshold=1.5, max_matches=5, embedding_dim=3)
    with pytest.raises(ValueError):
        MatchOptions(threshold=0.8, max_matches=0, embedding_dim=3)
