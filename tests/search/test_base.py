"""Tests for the search gateway abstraction."""

import pytest

from booksearch.search.backends.base import (
    BackendError,
    GatewayRequest,
    Hit,
    IndexingError,
    QueryError,
    SearchCancelled,
    SearchError,
    SearchGateway,
)
from booksearch.search.query import build_proximity_query
from booksearch.search.terms import split_terms


def request_for(text: str, field: str = "content", limit: int = 1000):
    query = build_proximity_query(split_terms(text), field)
    return GatewayRequest(query=query, limit=limit)


def hit_ids(hits: list[Hit]) -> list[str]:
    return [hit.book_id for hit in hits]


class TestGatewayRequest:
    """Test GatewayRequest data class."""

    def test_defaults(self):
        request = request_for("old man")

        assert request.limit == 1000
        assert request.timeout is None
        assert request.highlight_field == "content"

    def test_highlight_field_follows_query(self):
        assert request_for("old man", field="title").highlight_field == "title"


class TestHit:
    """Test Hit data class."""

    def test_minimal_hit(self):
        hit = Hit(book_id="b1")

        assert hit.fields == {}
        assert hit.snippets == []


class TestSearchExceptions:
    """Test search-specific exceptions."""

    @pytest.mark.parametrize(
        "error_class", [QueryError, BackendError, IndexingError, SearchCancelled]
    )
    def test_hierarchy(self, error_class):
        error = error_class("went wrong")

        assert isinstance(error, SearchError)
        assert str(error) == "went wrong"


class TestSearchGateway:
    """Test the abstract gateway interface."""

    def test_clear_is_required(self):
        class UnclearableGateway(SearchGateway):
            def search(self, request):
                return []

            def get(self, book_id):
                return None

            def index(self, book_id, fields):
                pass

            def delete(self, book_id):
                return False

            def ping(self):
                return True

        with pytest.raises(TypeError, match="clear"):
            UnclearableGateway()


class GatewayContract:
    """Contract tests that all search gateways must pass.

    Concrete gateway test classes inherit from this contract and provide a
    ``gateway`` fixture holding the sample corpus.
    """

    def test_finds_phrase(self, gateway: SearchGateway):
        hits = gateway.search(request_for("old man sea"))

        assert hit_ids(hits) == ["hemingway1952"]
        assert hits[0].fields["title"] == "The Old Man and the Sea"

    def test_snippets_mark_every_term(self, gateway: SearchGateway):
        (hit,) = gateway.search(request_for("old man sea"))

        assert hit.snippets
        snippet = hit.snippets[0]
        for word in ("old", "man", "sea"):
            assert f"<em>{word}</em>" in snippet.lower()

    def test_terms_must_be_in_order(self, gateway: SearchGateway):
        assert gateway.search(request_for("sea man old")) == []

    def test_slop_of_one(self, gateway: SearchGateway):
        gateway.index(
            "slop", {"content": "quiet stone harbor and quiet old stone pier"}
        )
        gateway.commit()

        assert hit_ids(gateway.search(request_for("quiet harbor"))) == ["slop"]
        assert gateway.search(request_for("quiet pier")) == []

    def test_slop_tries_later_candidates(self, gateway: SearchGateway):
        gateway.index("echo", {"content": "alpha bravo bravo xray charlie"})
        gateway.commit()

        hits = gateway.search(request_for("alpha bravo charlie"))
        assert hit_ids(hits) == ["echo"]

    def test_stop_words_in_query(self, gateway: SearchGateway):
        hits = gateway.search(request_for("the old man"))

        assert set(hit_ids(hits)) == {"hemingway1952", "river1990"}
        (hemingway,) = [hit for hit in hits if hit.book_id == "hemingway1952"]
        assert "<em>the</em> <em>old</em> <em>man</em>" in hemingway.snippets[0].lower()

    def test_fuzzy_terms(self, gateway: SearchGateway):
        hits = gateway.search(request_for("olde man sea"))
        assert hit_ids(hits) == ["hemingway1952"]

    def test_short_terms_match_exactly(self, gateway: SearchGateway):
        assert gateway.search(request_for("odl man")) == []

    def test_single_term(self, gateway: SearchGateway):
        hits = gateway.search(request_for("gulls"))
        assert set(hit_ids(hits)) == {"calm2001", "atlas2015"}

    def test_other_field(self, gateway: SearchGateway):
        hits = gateway.search(request_for("calm waters", field="title"))

        assert hit_ids(hits) == ["calm2001"]
        assert "<em>" in hits[0].snippets[0]

    def test_respects_limit(self, gateway: SearchGateway):
        gateway.index_batch(
            [{"id": f"fleet{i}", "content": "grey fleet sails"} for i in range(5)]
        )
        gateway.commit()

        assert len(gateway.search(request_for("grey fleet", limit=2))) == 2
        assert len(gateway.search(request_for("grey fleet"))) == 5

    def test_no_match(self, gateway: SearchGateway):
        assert gateway.search(request_for("lighthouse keeper")) == []

    def test_get(self, gateway: SearchGateway):
        doc = gateway.get("river1990")

        assert doc is not None
        assert doc["id"] == "river1990"
        assert doc["author"] == "Anne Walker"

    def test_get_missing(self, gateway: SearchGateway):
        assert gateway.get("missing") is None

    def test_index_replaces_document(self, gateway: SearchGateway):
        gateway.index("river1990", {"title": "Renamed", "content": "grey fleet"})
        gateway.commit()

        assert gateway.get("river1990")["title"] == "Renamed"
        assert "river1990" not in hit_ids(gateway.search(request_for("old man")))

    def test_update_merges_fields(self, gateway: SearchGateway):
        gateway.update("river1990", {"title": "Renamed"})
        gateway.commit()

        doc = gateway.get("river1990")
        assert doc["title"] == "Renamed"
        assert doc["author"] == "Anne Walker"

    def test_update_missing(self, gateway: SearchGateway):
        with pytest.raises(IndexingError):
            gateway.update("missing", {"title": "x"})

    def test_index_batch_requires_id(self, gateway: SearchGateway):
        with pytest.raises(IndexingError):
            gateway.index_batch([{"title": "No id"}])

    def test_delete(self, gateway: SearchGateway):
        assert gateway.delete("hemingway1952") is True
        gateway.commit()

        assert gateway.get("hemingway1952") is None
        assert gateway.search(request_for("old man sea")) == []

    def test_delete_missing(self, gateway: SearchGateway):
        assert gateway.delete("missing") is False

    def test_clear(self, gateway: SearchGateway):
        gateway.clear()
        gateway.commit()

        assert gateway.search(request_for("gulls")) == []
        assert gateway.get_statistics()["total_documents"] == 0

    def test_ping(self, gateway: SearchGateway):
        assert gateway.ping() is True

    def test_statistics(self, gateway: SearchGateway):
        stats = gateway.get_statistics()

        assert stats["backend"] == type(gateway).__name__
        assert stats["total_documents"] == 4
