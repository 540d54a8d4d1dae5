from types import SimpleNamespace

import pytest

from jsonapi_serializer import IdentityResolutionError, RelationshipResolutionError, has_many, has_one, resource
from jsonapi_serializer.projection import project_attributes, project_relationships, project_resource, resource_identity
from jsonapi_serializer.query_plan import QueryPlan, parse_query_plan
from conftest import make_article, make_person


def test_project_resource(articles, blog) -> None:
    article = blog.articles[1]
    result = project_resource(articles, article, QueryPlan())
    assert result["id"] == "a2"
    assert result["type"] == "articles"
    assert result["attributes"] == {"title": "Second", "created-at": article.created_at, "price": 10, "status": "draft"}
    assert result["relationships"] == {
        "author": {"data": {"id": "1", "type": "people"}},
        "comments": {"data": [{"id": "c1", "type": "comments"}]},
    }


def test_values_are_not_coerced(articles, blog) -> None:
    result = project_resource(articles, blog.articles[0], QueryPlan())
    assert result["attributes"]["created-at"] is blog.articles[0].created_at


def test_sparse_fieldset(articles, blog) -> None:
    plan = parse_query_plan({"fields[articles]": "title,unknown"})
    result = project_resource(articles, blog.articles[1], plan)
    assert set(result["attributes"]) == {"title"}
    assert result["id"] == "a2"
    assert result["type"] == "articles"
    assert set(result["relationships"]) == {"author", "comments"}


def test_sparse_fieldset_of_other_type(articles, blog) -> None:
    plan = parse_query_plan({"fields[people]": "name"})
    assert len(project_attributes(articles, blog.articles[0], plan)) == 4


def test_attribute_condition(people, blog) -> None:
    assert "email" not in project_attributes(people, blog.alice, QueryPlan())
    admin_plan = QueryPlan(params={"admin": True})
    assert project_attributes(people, blog.alice, admin_plan)["email"] == "alice@example.com"


def test_relationship_condition(blog) -> None:
    descriptor = resource(
        "ArticleSerializer", relationships=[has_one("author", type="people", condition=lambda obj, params: params.get("show_author"))]
    )
    assert project_relationships(descriptor, blog.articles[0], QueryPlan()) == {}
    assert "author" in project_relationships(descriptor, blog.articles[0], QueryPlan(params={"show_author": True}))


def test_empty_relationships(articles) -> None:
    article = make_article("a3", author=None, comments=None)
    article.comments = None
    assert project_relationships(articles, article, QueryPlan()) == {"author": {"data": None}, "comments": {"data": []}}


def test_mapping_objects(articles) -> None:
    article = {"id": 7, "title": "dict", "author": {"id": 3}, "comments": [None, {"id": 4}]}
    result = project_resource(articles, article, QueryPlan())
    assert result["id"] == "7"
    assert result["attributes"]["title"] == "dict"
    assert result["attributes"]["price"] is None
    assert result["relationships"]["author"]["data"] == {"id": "3", "type": "people"}
    assert result["relationships"]["comments"]["data"] == [{"id": "4", "type": "comments"}]


def test_polymorphic_relationship() -> None:
    descriptor = resource(
        "CommentSerializer",
        relationships=[has_one("target", polymorphic={"Article": "articles", "Photo": "photos"}), has_one("origin", polymorphic=True)],
    )
    comment = {"id": "1", "target": {"kind": "Photo", "id": 5}, "origin": {"kind": "Import", "id": 8}}
    result = project_relationships(descriptor, comment, QueryPlan())
    assert result["target"]["data"] == {"id": "5", "type": "photos"}
    assert result["origin"]["data"] == {"id": "8", "type": "import"}


def test_polymorphic_fallback_to_static_type() -> None:
    descriptor = resource("CommentSerializer", relationships=[has_one("target", type="things", polymorphic={"Article": "articles"})])
    result = project_relationships(descriptor, {"id": "1", "target": {"kind": "Video", "id": 2}}, QueryPlan())
    assert result["target"]["data"] == {"id": "2", "type": "things"}


def test_unresolvable_type() -> None:
    descriptor = resource("CommentSerializer", relationships=[has_one("target", polymorphic={"Article": "articles"})])
    with pytest.raises(RelationshipResolutionError) as exc_info:
        project_relationships(descriptor, {"id": "1", "target": {"kind": "Video", "id": 2}}, QueryPlan())
    assert exc_info.value.relationship == "target"


def test_unresolvable_id() -> None:
    descriptor = resource("CommentSerializer", relationships=[has_many("tags", type="tags")])
    with pytest.raises(RelationshipResolutionError):
        project_relationships(descriptor, {"id": "1", "tags": [{"label": "x"}]}, QueryPlan())


def test_id_method() -> None:
    descriptor = resource(
        "CommentSerializer",
        relationships=[has_one("author", type="people", id_method="get_slug"), has_one("editor", type="people", id_method="slug")],
    )
    author = SimpleNamespace(id=1, get_slug=lambda: "alice")
    editor = {"id": 2, "slug": "bob"}
    result = project_relationships(descriptor, {"id": "1", "author": author, "editor": editor}, QueryPlan())
    assert result["author"]["data"] == {"id": "alice", "type": "people"}
    assert result["editor"]["data"] == {"id": "bob", "type": "people"}


def test_identity_rule() -> None:
    by_field = resource("Item", id="uuid")
    by_function = resource("Item", id=lambda obj, params: f"{params['prefix']}-{obj['n']}")
    assert resource_identity(by_field, {"uuid": "u-1"}, QueryPlan()) == "u-1"
    assert resource_identity(by_function, {"n": 3}, QueryPlan(params={"prefix": "x"})) == "x-3"


@pytest.mark.parametrize("obj", [{"title": "no id"}, {"id": None}, {"id": ""}])
def test_missing_identity(obj) -> None:
    with pytest.raises(IdentityResolutionError):
        project_resource(resource("ArticleSerializer"), obj, QueryPlan())


def test_failing_identity_function() -> None:
    descriptor = resource("Item", id=lambda obj, params: obj["missing"])
    with pytest.raises(IdentityResolutionError):
        resource_identity(descriptor, {}, QueryPlan())


def test_project_none(articles) -> None:
    assert project_resource(articles, None, QueryPlan()) is None


def test_person_without_relationships_key(profiles) -> None:
    result = project_resource(profiles, SimpleNamespace(id="p1", bio="b"), QueryPlan())
    assert "relationships" not in result
    assert result == {"id": "p1", "type": "profiles", "attributes": {"bio": "b"}}


def test_person_helper(people) -> None:
    result = project_resource(people, make_person("9", "Zed"), QueryPlan())
    assert result["relationships"] == {"profile": {"data": None}}
