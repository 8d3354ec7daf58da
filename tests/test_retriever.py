"""Tests for VectorSearchClient."""

import numpy as np
import pytest
import requests

from ragchat import RetrievedDocument
from ragchat.errors import RetrievalUnavailableError
from ragchat.retriever import normalize_hit

from .conftest import TestConstants, create_mock_http_response, make_hit


def _search(client, **overrides):
    kwargs = {
        "top_k": TestConstants.DEFAULT_TOP_K,
        "threshold": TestConstants.DEFAULT_THRESHOLD,
        "namespace": TestConstants.TEST_NAMESPACE,
    }
    kwargs.update(overrides)
    return client.search(np.full(3, 0.5, dtype=np.float32), **kwargs)


def test_search_posts_expected_payload(search_client, mock_session):
    mock_session.post.return_value = create_mock_http_response(
        json_data={"vectors": [make_hit("A teaching", title="T")]}
    )

    _search(search_client, metadata_filter={"similarity_metric": "cosine"})

    args, kwargs = mock_session.post.call_args
    assert args[0] == (
        "http://vectors.test/v1/public/project-123/database/vectors/search"
    )
    assert kwargs["json"] == {
        "query_vector": [0.5, 0.5, 0.5],
        "limit": TestConstants.DEFAULT_TOP_K,
        "threshold": TestConstants.DEFAULT_THRESHOLD,
        "namespace": TestConstants.TEST_NAMESPACE,
        "filter_metadata": {"similarity_metric": "cosine"},
    }
    assert kwargs["timeout"] == 5.0
    assert kwargs["headers"]["Content-Type"] == "application/json"


def test_search_omits_filter_when_not_given(search_client, mock_session):
    mock_session.post.return_value = create_mock_http_response(json_data={"vectors": []})

    _search(search_client)

    assert "filter_metadata" not in mock_session.post.call_args.kwargs["json"]


def test_search_normalizes_hits(search_client, mock_session):
    mock_session.post.return_value = create_mock_http_response(
        json_data={
            "vectors": [
                make_hit("First", 0.95, title="Teaching A"),
                {"text": "Second", "similarity": 0.8},
                "not-a-hit",
            ]
        }
    )

    documents = _search(search_client)

    assert documents == [
        RetrievedDocument(text="First", metadata={"title": "Teaching A"}, score=0.95),
        RetrievedDocument(text="Second", metadata={}, score=0.8),
    ]


def test_search_applies_threshold_and_limit(search_client, mock_session):
    hits = [make_hit(f"doc {i}", 0.99 - i * 0.01) for i in range(8)]
    hits.append(make_hit("below threshold", 0.1))
    mock_session.post.return_value = create_mock_http_response(json_data={"vectors": hits})

    documents = _search(search_client, top_k=3)

    assert [doc.text for doc in documents] == ["doc 0", "doc 1", "doc 2"]


def test_search_empty_result_is_not_an_error(search_client, mock_session):
    mock_session.post.return_value = create_mock_http_response(json_data={})
    assert _search(search_client) == []


def test_search_http_error_raises(search_client, mock_session):
    mock_session.post.return_value = create_mock_http_response(
        status_code=500, text="internal error"
    )

    with pytest.raises(RetrievalUnavailableError, match="500 - internal error"):
        _search(search_client)


def test_search_transport_error_raises(search_client, mock_session):
    mock_session.post.side_effect = requests.ConnectionError("refused")

    with pytest.raises(RetrievalUnavailableError, match="refused"):
        _search(search_client)


def test_search_invalid_json_raises(search_client, mock_session):
    mock_session.post.return_value = create_mock_http_response(
        json_error=ValueError("bad json")
    )

    with pytest.raises(RetrievalUnavailableError, match="invalid JSON"):
        _search(search_client)


def test_normalize_hit_defaults():
    assert normalize_hit({}) == RetrievedDocument(text="", metadata={}, score=0.0)


@pytest.mark.parametrize("score", ["n/a", [0.9], {"value": 0.9}])
def test_search_skips_hits_with_unusable_score(search_client, mock_session, score):
    mock_session.post.return_value = create_mock_http_response(
        json_data={
            "vectors": [
                {"document": "broken", "score": score},
                make_hit("Valid teaching", 0.9),
            ]
        }
    )

    documents = _search(search_client)

    assert [doc.text for doc in documents] == ["Valid teaching"]


def test_normalize_hit_rejects_non_numeric_score():
    with pytest.raises(ValueError, match="could not convert"):
        normalize_hit({"document": "t", "score": "n/a"})
