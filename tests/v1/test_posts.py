# mypy: ignore-errors
# tests/v1/test_posts.py
"""Tests for recent posts and permalink endpoints."""

from fastapi import status


def _as(uid):
    return {"X-Forum-Uid": str(uid)}


def test_recent_posts(client, forum) -> None:
    alice = forum.user("alice")
    bob = forum.user("bob")
    general = forum.category()
    public = forum.topic(general, alice, anonymous=1)
    forum.topic(general, alice, private=1)

    response = client.get("/api/v1/posts/recent", headers=_as(bob.uid))
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [p["pid"] for p in data["posts"]] == [public.main_pid]
    assert data["posts"][0]["user"]["username"].startswith("Anonymous ")
    assert data["nextStart"] == 20

    response = client.get("/api/v1/posts/recent/alltime?stop=0", headers=_as(alice.uid))
    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()["posts"]) == 1
    assert response.json()["nextStart"] == 1


def test_recent_posts_unknown_term(client) -> None:
    response = client.get("/api/v1/posts/recent/fortnight")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_post_permalink(client, forum) -> None:
    alice = forum.user("alice")
    bob = forum.user("bob")
    topic = forum.topic(forum.category(), alice, title="Hello")
    reply = forum.post(topic, bob)
    private = forum.topic(forum.category(), alice, private=1)

    response = client.get(f"/api/v1/post/{reply.pid}", follow_redirects=False)
    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == f"/topic/{topic.tid}/hello/2"

    response = client.get(f"/api/v1/post/{private.main_pid}", headers=_as(bob.uid), follow_redirects=False)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    assert client.get("/api/v1/post/nope", follow_redirects=False).status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/v1/post/9999", follow_redirects=False).status_code == status.HTTP_404_NOT_FOUND
