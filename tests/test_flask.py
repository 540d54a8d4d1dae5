import datetime
import decimal
import json
import logging
import uuid

import pytest
from flask import Flask, request

from jsonapi_serializer import JSONAPI, JSONAPIJSONEncoder, JSONAPIRequest, JSONAPISerializer, OffsetPage, ValidationError, jsonapi_response
from jsonapi_serializer.config import get_config
from conftest import make_article


@pytest.fixture
def app(registered, articles, blog):
    app = Flask("test_app")
    app.config["TESTING"] = True
    JSONAPI(app)
    serializer = JSONAPISerializer(registered)
    collection = blog.articles + [make_article(f"x{i}", title=f"extra {i}", author=blog.bob) for i in range(3)]

    @app.route("/articles")
    def get_articles():
        return jsonapi_response(articles, collection, allowed_includes=["author", "comments"], serializer=serializer)

    @app.route("/articles/<article_id>")
    def get_article(article_id):
        article = next((item for item in collection if item.id == article_id), None)
        return jsonapi_response("articles", article, serializer=serializer)

    @app.route("/broken")
    def get_broken():
        return jsonapi_response(articles, [make_article(None)], serializer=serializer)

    @app.route("/articles", methods=["POST"])
    def post_article():
        payload = request.get_jsonapi_payload("articles")
        return jsonapi_response(articles, make_article("new", title=payload["title"]), status=201, serializer=serializer)

    return app


@pytest.fixture
def client(app):
    return app.test_client()


def test_request_class(app) -> None:
    assert app.request_class is JSONAPIRequest


def test_get_collection(client) -> None:
    response = client.get("/articles?include=author.profile&sort=title&page[number]=1&page[size]=2")
    assert response.status_code == 200
    assert response.mimetype == "application/vnd.api+json"
    document = response.get_json()
    assert [item["id"] for item in document["data"]] == ["a1", "a2"]
    assert document["data"][0]["attributes"]["created-at"] == "2024-01-01"
    assert [(item["type"], item["id"]) for item in document["included"]] == [("people", "1")]
    assert document["meta"]["total"] == 5
    assert document["links"]["next"] == "http://localhost/articles?include=author.profile&sort=title&page[number]=2&page[size]=2"


def test_get_single(client) -> None:
    document = client.get("/articles/a2?include=comments").get_json()
    assert document["data"]["id"] == "a2"
    assert document["included"][0]["id"] == "c1"
    assert client.get("/articles/missing").get_json() == {"data": None}


def test_serialization_error(client) -> None:
    response = client.get("/broken")
    assert response.status_code == 500
    error = response.get_json()["errors"][0]
    assert error["status"] == "500"
    assert error["title"] == "Serialization Error"
    assert error["detail"].startswith("Identity Resolution Error")


def test_post(client) -> None:
    body = {"data": {"type": "articles", "attributes": {"title": "posted"}}}
    response = client.post("/articles", data=json.dumps(body), content_type="application/vnd.api+json")
    assert response.status_code == 201
    assert response.get_json()["data"]["attributes"]["title"] == "posted"


@pytest.mark.parametrize("body", ["not json", json.dumps({"data": {"id": "1"}})])
def test_post_invalid(client, body) -> None:
    response = client.post("/articles", data=body, content_type="application/vnd.api+json")
    assert response.status_code == 400
    error = response.get_json()["errors"][0]
    assert error["status"] == "400"
    assert error["detail"].startswith("Validation Error: ")


def test_error_handler(app, client) -> None:
    @app.route("/invalid")
    def invalid():
        raise ValidationError("bad page", pointer="/page")

    response = client.get("/invalid")
    assert response.status_code == 400
    assert response.get_json() == {
        "errors": [{"status": "400", "title": "Bad Request", "detail": "Validation Error: bad page", "source": {"pointer": "/page"}}]
    }


def test_query_plan_from_request(app) -> None:
    app.config["DEFAULT_PAGE_SIZE"] = 2
    with app.test_request_context("/articles?page[number]=3&include=author,tags&fields[people]=name"):
        plan = request.get_query_plan(allowed_includes=["author"], params={"admin": True})
    assert plan.page == OffsetPage(3, 2)
    assert plan.include == ("author",)
    assert plan.fields_for("people") == ("name",)
    assert plan.params["admin"] is True


def test_is_jsonapi(app) -> None:
    with app.test_request_context("/", method="POST", content_type="application/vnd.api+json; charset=utf-8"):
        assert request.is_jsonapi
    with app.test_request_context("/", method="POST", content_type="text/plain"):
        assert not request.is_jsonapi


def test_init_app_options(monkeypatch) -> None:
    monkeypatch.setattr(JSONAPI, "MAX_PAGE_SIZE", JSONAPI.MAX_PAGE_SIZE)
    app = Flask("options_app")
    JSONAPI(app, MAX_PAGE_SIZE=5)
    assert JSONAPI.MAX_PAGE_SIZE == 5
    with app.test_request_context("/?page[size]=50"):
        assert request.get_query_plan().page == OffsetPage(1, 5)


def test_config_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("DEFAULT_PAGE_SIZE", "3")
    assert get_config("DEFAULT_PAGE_SIZE") == 3
    monkeypatch.setenv("DEFAULT_PAGE_SIZE", "three")
    assert get_config("DEFAULT_PAGE_SIZE") == JSONAPI.DEFAULT_PAGE_SIZE
    monkeypatch.delenv("DEFAULT_PAGE_SIZE")
    assert get_config("DEFAULT_PAGE_SIZE") == JSONAPI.DEFAULT_PAGE_SIZE


def test_json_encoding(app) -> None:
    value = {
        "date": datetime.date(2024, 1, 2),
        "datetime": datetime.datetime(2024, 1, 2, 3, 4, 5),
        "decimal": decimal.Decimal("1.5"),
        "uuid": uuid.UUID("12345678123456781234567812345678"),
        "set": {1},
        "bytes": b"\x01",
        "delta": datetime.timedelta(minutes=1),
    }
    expected = {
        "date": "2024-01-02",
        "datetime": "2024-01-02 03:04:05",
        "decimal": 1.5,
        "uuid": "12345678-1234-5678-1234-567812345678",
        "set": [1],
        "bytes": "01",
        "delta": "0:01:00",
    }
    assert json.loads(app.json.dumps(value)) == expected
    assert json.loads(json.dumps(value, cls=JSONAPIJSONEncoder)) == expected


def test_mimetype_option(app, client) -> None:
    app.config["JSONAPI_MIMETYPE"] = "application/json"
    assert client.get("/articles/a1").mimetype == "application/json"


def test_loglevel_option(monkeypatch) -> None:
    log = logging.getLogger("jsonapi_serializer")
    previous = log.level
    monkeypatch.setattr(JSONAPI, "LOGLEVEL", JSONAPI.LOGLEVEL)
    try:
        JSONAPI(Flask("loglevel_app"), LOGLEVEL=logging.ERROR)
        assert log.level == logging.ERROR
    finally:
        log.setLevel(previous)
