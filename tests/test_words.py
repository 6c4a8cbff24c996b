"""Tests for vocabulary browsing."""
from __future__ import annotations

import pytest

from app.services.vocabulary import VocabularyNotFoundError, VocabularyService
from app.utils.exceptions import InvalidInputError


def test_list_words_orders_hardest_first(client, vocabulary):
    response = client.get("/api/v1/words/")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 4
    assert [word["word"] for word in body["words"]] == [
        "Pernicious",
        "Ephemeral",
        "Serendipity",
        "Ubiquitous",
    ]


def test_list_words_filters(client, vocabulary):
    literary = client.get("/api/v1/words/", params={"category": "literary"}).json()
    assert {word["id"] for word in literary["words"]} == {"word-1", "word-3"}

    searched = client.get("/api/v1/words/", params={"search": "everywhere"}).json()
    assert [word["id"] for word in searched["words"]] == ["word-2"]

    paged = client.get("/api/v1/words/", params={"limit": 1, "offset": 1}).json()
    assert paged["total"] == 4
    assert paged["count"] == 1


def test_random_words(client, vocabulary):
    response = client.get("/api/v1/words/random/2", params={"difficulty": 3})

    assert response.status_code == 200
    words = response.json()["words"]
    assert len(words) == 2
    assert all(word["difficulty_level"] == 3 for word in words)


def test_get_word(client, vocabulary):
    response = client.get("/api/v1/words/word-1")

    assert response.status_code == 200
    assert response.json()["usages"] == ["Finding that rare book was pure serendipity."]
    assert client.get("/api/v1/words/word-404").status_code == 404


def test_article_words_reject_unknown_ids(db_session, vocabulary):
    service = VocabularyService(db_session)

    words = service.get_article_words(["word-2", "word-1", "word-2"])
    assert sorted(word.id for word in words) == ["word-1", "word-2"]

    with pytest.raises(InvalidInputError):
        service.get_article_words([])
    with pytest.raises(InvalidInputError):
        service.get_article_words(["word-1", "ghost"])
    with pytest.raises(VocabularyNotFoundError):
        service.get_word("ghost")
