"""
Tests for the synchronous Spine client: fetch, save and delete flows.
"""

import uuid
from unittest.mock import MagicMock

import pytest

from spine import (
    ClientConfig,
    EmptyResponseError,
    HttpxClient,
    NotFoundError,
    PreconditionError,
    Query,
    ResourceNotFoundError,
    SerializerError,
    ServerError,
    SpineClient,
    TransportError,
    UnaddressableResourceError,
    ValidationError,
)
from spine.serializer import Serializer

from .support import (
    ENDPOINT,
    Article,
    Comment,
    Person,
    RecordingHTTPClient,
    article_document,
    response,
)


@pytest.fixture
def http():
    return RecordingHTTPClient()


@pytest.fixture
def client(http):
    client = SpineClient(ENDPOINT, http=http)
    for resource_class in (Article, Comment, Person):
        client.register_type(resource_class)
    return client


class TestClientSetup:
    """Tests for client construction."""

    def test_endpoint_required(self):
        with pytest.raises(PreconditionError):
            SpineClient("")

    def test_accepts_config(self):
        client = SpineClient(ClientConfig(endpoint=ENDPOINT + "/", timeout=5.0))
        assert client.endpoint == ENDPOINT
        assert isinstance(client._http, HttpxClient)
        client.close()

    def test_isolated_registries(self):
        first = SpineClient(ENDPOINT, http=RecordingHTTPClient())
        second = SpineClient(ENDPOINT, http=RecordingHTTPClient())
        first.register_type(Article)
        assert "articles" not in second.serializer.registered_types

    def test_injected_http_is_not_closed(self, http):
        with SpineClient(ENDPOINT, http=http):
            pass
        assert not http.closed


class TestFetchForQuery:
    """Tests for fetch_for_query."""

    def test_returns_only_query_type(self, client, http):
        http.responses.append(
            response(
                200,
                {
                    "data": [
                        {"type": "articles", "id": "1", "attributes": {"title": "One"}},
                        {"type": "articles", "id": "2", "attributes": {"title": "Two"}},
                    ],
                    "included": [
                        {"type": "people", "id": "p1", "attributes": {"name": "Ann"}},
                        {"type": "comments", "id": "c1", "attributes": {"body": "Hi"}},
                    ],
                },
            )
        )
        articles = client.fetch_for_query(Query.for_type("articles", ["1", "2"]).including("author"))

        assert http.last.method == "GET"
        assert http.last.url == f"{ENDPOINT}/articles?filter[id]=1,2&include=author"
        assert [a.title for a in articles] == ["One", "Two"]
        assert all(isinstance(a, Article) for a in articles)

    def test_placeholders_are_not_returned(self, client, http):
        http.responses.append(
            response(
                200,
                {
                    "data": [{"type": "people", "id": "p1"}],
                    "included": [
                        {
                            "type": "comments",
                            "id": "c1",
                            "relationships": {"author": {"data": {"type": "people", "id": "p2"}}},
                        }
                    ],
                },
            )
        )
        people = client.fetch_for_query(Query.for_type("people"))
        assert [p.id for p in people] == ["p1"]

    def test_domain_error(self, client, http):
        http.responses.append(
            response(404, {"errors": [{"status": "404", "title": "Not found"}]})
        )
        with pytest.raises(NotFoundError) as exc:
            client.fetch_for_query(Query.for_type("articles"))
        assert not isinstance(exc.value, ResourceNotFoundError)
        assert exc.value.status_code == 404
        assert exc.value.errors[0].title == "Not found"

    def test_error_without_json_body(self, client, http):
        http.responses.append(response(502, content=b"<html>Bad gateway</html>"))
        with pytest.raises(ServerError) as exc:
            client.fetch_for_query(Query.for_type("articles"))
        assert exc.value.status_code == 502

    def test_success_without_body(self, client, http):
        http.responses.append(response(200))
        with pytest.raises(EmptyResponseError):
            client.fetch_for_query(Query.for_type("articles"))

    def test_invalid_json(self, client, http):
        http.responses.append(response(200, content=b"{not json"))
        with pytest.raises(SerializerError):
            client.fetch_for_query(Query.for_type("articles"))

    def test_transport_error_skips_decoding(self):
        serializer = MagicMock(spec=Serializer)
        http = RecordingHTTPClient(error=TransportError("connection refused"))
        client = SpineClient(ENDPOINT, http=http, serializer=serializer)

        with pytest.raises(TransportError):
            client.fetch_for_query(Query.for_type("articles"))

        serializer.deserialize.assert_not_called()
        serializer.deserialize_error.assert_not_called()


class TestFetchByTypeAndId:
    """Tests for fetch_by_type_and_id."""

    def test_fetch(self, client, http):
        http.responses.append(response(200, article_document()))
        article = client.fetch_by_type_and_id("articles", "42")
        assert http.last.url == f"{ENDPOINT}/articles/42"
        assert isinstance(article, Article)
        assert article.id == "42"
        assert article.title == "Hello"

    def test_accepts_class(self, client, http):
        http.responses.append(response(200, article_document()))
        assert client.fetch_by_type_and_id(Article, "42").id == "42"

    def test_empty_result(self, client, http):
        http.responses.append(response(200, {"data": []}))
        with pytest.raises(ResourceNotFoundError) as exc:
            client.fetch_by_type_and_id("articles", "42")
        assert isinstance(exc.value, PreconditionError)
        assert isinstance(exc.value, NotFoundError)
        assert "'articles' resource with ID '42'" in str(exc.value)


class TestFetchRelated:
    """Tests for fetch_related."""

    def test_fetch_related(self, client, http):
        http.responses.append(
            response(200, {"data": [{"type": "comments", "id": "c1", "attributes": {"body": "Hi"}}]})
        )
        comments = client.fetch_related("comments", Article(id="42"))
        assert http.last.url == f"{ENDPOINT}/articles/42/comments"
        assert [c.body for c in comments] == ["Hi"]

    def test_unaddressable_source(self, client, http):
        with pytest.raises(UnaddressableResourceError):
            client.fetch_related("comments", Article())
        assert http.requests == []


class TestSave:
    """Tests for save."""

    def test_create_posts_to_collection(self, client, http):
        article = Article(title="Hello")
        ids_at_send = []
        http.on_request = lambda request: ids_at_send.append(article.id)
        http.responses.append(response(201, article_document(article_id="42", title="Hello")))

        result = client.save(article)

        assert http.last.method == "POST"
        assert http.last.url == f"{ENDPOINT}/articles"
        assert "id" not in http.last.payload["data"]
        assert ids_at_send[0] is not None
        uuid.UUID(ids_at_send[0])
        assert result is article
        assert article.id == "42"

    def test_client_ids_are_unique(self, client, http):
        http.responses.extend([response(204), response(204)])
        first, second = Article(), Article()
        client.save(first)
        client.save(second)
        assert first.id != second.id

    def test_create_without_body_keeps_client_id(self, client, http):
        http.responses.append(response(204))
        article = Article(title="Hello")
        result = client.save(article)
        assert result is article
        assert uuid.UUID(article.id)
        assert article.title == "Hello"

    def test_response_merges_attributes(self, client, http):
        article = Article(id="42", title="Draft", body="Text")
        http.responses.append(response(200, article_document(title="Published")))
        result = client.save(article)
        assert result is article
        assert article.title == "Published"
        assert article.body == "Text"

    def test_update_puts_to_resource(self, client, http):
        http.responses.append(response(200, article_document()))
        client.save(Article(id="42", title="Hello"))
        assert http.last.method == "PUT"
        assert http.last.url == f"{ENDPOINT}/articles/42"
        assert http.last.payload["data"]["id"] == "42"

    def test_update_uses_self_link(self, client, http):
        http.responses.append(response(204))
        client.save(Article(id="42", self_link="https://api.example.com/blogs/1/articles/42"))
        assert http.last.url == "https://api.example.com/blogs/1/articles/42"

    def test_sends_and_clears_pending_relationships(self, client, http):
        article = Article(id="42")
        article.comments.add(Comment(id="c1"))
        http.responses.append(response(204))

        client.save(article)

        assert http.last.payload["data"]["relationships"]["comments"] == {
            "data": [{"type": "comments", "id": "c1"}]
        }
        assert not article.comments.is_dirty

    def test_echoed_linkage_keeps_linked_instances(self, client, http):
        ann = Person(id="7", name="Ann")
        article = Article(title="Hello")
        article.author.set(ann)
        http.responses.append(
            response(
                201,
                article_document(
                    article_id="42",
                    relationships={"author": {"data": {"type": "people", "id": "7"}}},
                ),
            )
        )

        client.save(article)

        assert article.id == "42"
        assert article.author.resource is ann
        assert ann.name == "Ann"
        assert ann.is_loaded

    def test_update_keeps_loaded_relationships(self, client, http):
        first, second = Comment(id="c1", body="First"), Comment(id="c2", body="Second")
        article = Article(id="42")
        article.comments.replace([first, second])
        http.responses.append(
            response(
                200,
                article_document(
                    relationships={
                        "comments": {
                            "data": [
                                {"type": "comments", "id": "c2"},
                                {"type": "comments", "id": "c1"},
                            ]
                        }
                    }
                ),
            )
        )

        client.save(article)

        assert article.comments.resources[0] is second
        assert article.comments.resources[1] is first
        assert all(c.is_loaded for c in article.comments)

    def test_transport_error_keeps_client_id(self, client, http):
        http.error = TransportError("timeout")
        article = Article(title="Hello")
        with pytest.raises(TransportError):
            client.save(article)
        assert article.id is not None

    def test_domain_error(self, client, http):
        http.responses.append(
            response(422, {"errors": [{"detail": "Title must not be blank"}]})
        )
        article = Article(id="42", title="")
        with pytest.raises(ValidationError) as exc:
            client.save(article)
        assert exc.value.message == "Title must not be blank"
        assert article.title == ""

    def test_unsaved_related_resource(self, client, http):
        article = Article(title="Hello")
        article.author.set(Person(name="Unsaved"))
        with pytest.raises(PreconditionError):
            client.save(article)
        assert http.requests == []
        assert article.id is None


class TestDelete:
    """Tests for delete."""

    @pytest.mark.parametrize(
        "reply",
        [response(204), response(200, {"meta": {"deleted": True}})],
    )
    def test_delete(self, client, http, reply):
        http.responses.append(reply)
        article = Article(id="42", title="Bye")
        assert client.delete(article) is None
        assert http.last.method == "DELETE"
        assert http.last.url == f"{ENDPOINT}/articles/42"
        assert article.id == "42"
        assert article.title == "Bye"

    def test_unaddressable(self, client, http):
        with pytest.raises(UnaddressableResourceError):
            client.delete(Article())
        assert http.requests == []

    def test_transport_error(self, client, http):
        http.error = TransportError("reset")
        with pytest.raises(TransportError):
            client.delete(Article(id="42"))

    def test_domain_error(self, client, http):
        http.responses.append(response(404))
        with pytest.raises(NotFoundError):
            client.delete(Article(id="42"))
