# mypy: ignore-errors
# tests/v1/test_topics.py
"""Tests for topic page endpoints."""

from fastapi import status

from forum_stage.models.user import SORT_NEWEST_TO_OLDEST
from forum_stage.services.hooks import HOOK_TOPIC_SEARCH


def _as(uid):
    return {"X-Forum-Uid": str(uid)}


def test_get_topic_page(client, forum) -> None:
    alice = forum.user("alice")
    bob = forum.user("bob")
    topic = forum.topic(forum.category(), alice, anonymous=1, title="Quiet")
    forum.post(topic, bob, anonymous=0, content="hello")

    response = client.get(f"/api/v1/topics/{topic.tid}", headers=_as(bob.uid))
    assert response.status_code == status.HTTP_200_OK
    page = response.json()
    assert page["title"] == "Quiet"
    assert [p["user"]["username"] for p in page["posts"]][1] == "bob"
    assert page["posts"][0]["user"]["username"].startswith("Anonymous ")
    assert page["posts"][0]["uid"] == 0


def test_hidden_topic_looks_missing(client, forum) -> None:
    alice = forum.user("alice")
    bob = forum.user("bob")
    topic = forum.topic(forum.category(), alice, private=1)

    hidden = client.get(f"/api/v1/topics/{topic.tid}", headers=_as(bob.uid))
    missing = client.get("/api/v1/topics/9999", headers=_as(bob.uid))
    assert hidden.status_code == missing.status_code == status.HTTP_404_NOT_FOUND
    assert hidden.json() == missing.json()

    assert client.get(f"/api/v1/topics/{topic.tid}", headers=_as(alice.uid)).status_code == 200


def test_topic_follows_viewer_sort(client, forum) -> None:
    reader = forum.user("reader", topic_post_sort=SORT_NEWEST_TO_OLDEST)
    topic = forum.topic(forum.category(), forum.user("alice"), content="first")
    forum.post(topic, reader, content="second")

    response = client.get(f"/api/v1/topics/{topic.tid}", headers=_as(reader.uid))
    assert [p["content"] for p in response.json()["posts"]] == ["second", "first"]


def test_search_topic(client, forum, hooks) -> None:
    topic = forum.topic(forum.category(), forum.user("alice"))

    response = client.get(f"/api/v1/topics/{topic.tid}/search")
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    hooks.register(HOOK_TOPIC_SEARCH, lambda data: [topic.main_pid])
    response = client.get(f"/api/v1/topics/{topic.tid}/search?term=main")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"tid": topic.tid, "term": "main", "ids": [topic.main_pid]}
