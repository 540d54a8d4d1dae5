import datetime
from types import SimpleNamespace

import pytest

from jsonapi_serializer import ResourceRegistry, attribute, belongs_to, has_many, has_one, resource


@pytest.fixture
def registry() -> ResourceRegistry:
    return ResourceRegistry()


@pytest.fixture
def profiles():
    return resource("ProfileSerializer", type="profiles", attributes=["bio"])


@pytest.fixture
def people(profiles):
    return resource(
        "PersonSerializer",
        type="people",
        attributes=["name", attribute("email", condition=lambda obj, params: params.get("admin", False))],
        relationships=[has_one("profile", type="profiles", descriptor=profiles)],
    )


@pytest.fixture
def comments(people):
    return resource(
        "CommentSerializer",
        type="comments",
        attributes=["body"],
        relationships=[belongs_to("author", type="people", descriptor=people)],
    )


@pytest.fixture
def articles(people, comments):
    return resource(
        "ArticleSerializer",
        type="articles",
        attributes=["title", attribute("created_at", "created-at"), "price", "status"],
        relationships=[
            belongs_to("author", type="people", descriptor=people),
            has_many("comments", type="comments", descriptor=comments),
        ],
    )


@pytest.fixture
def registered(registry, profiles, people, comments, articles) -> ResourceRegistry:
    for descriptor in (profiles, people, comments, articles):
        registry.register(descriptor)
    return registry


def make_person(person_id: str, name: str, profile=None) -> SimpleNamespace:
    return SimpleNamespace(id=person_id, name=name, email=f"{name.lower()}@example.com", profile=profile)


def make_article(article_id, title="title", author=None, comments=None, price=10, status="draft", created_at=None) -> SimpleNamespace:
    return SimpleNamespace(
        id=article_id,
        title=title,
        created_at=created_at or datetime.date(2024, 1, 1),
        price=price,
        status=status,
        author=author,
        comments=comments if comments is not None else [],
    )


@pytest.fixture
def blog():
    """
    two articles by the same author, the second article has a comment by that author as well
    """
    profile = SimpleNamespace(id="p1", bio="writes things")
    alice = make_person("1", "Alice", profile)
    bob = make_person("2", "Bob")
    comment = SimpleNamespace(id="c1", body="first!", author=alice)
    first = make_article("a1", "First", author=alice)
    second = make_article("a2", "Second", author=alice, comments=[comment])
    return SimpleNamespace(alice=alice, bob=bob, profile=profile, comment=comment, articles=[first, second])
