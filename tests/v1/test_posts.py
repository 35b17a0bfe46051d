# tests/v1/test_posts.py
"""Tests for post and comment endpoints."""

from fastapi import status

from forum_tally.models import Forum
from forum_tally.services.cache_keys import CacheKeys


def _ids(response) -> list[int]:
    return [entry["item"]["id"] for entry in response.json()]


def _vote(client, headers, kind, target_id, value) -> None:
    response = client.put(f"/api/v1/votes/{kind}/{target_id}", json={"value": value}, headers=headers)
    assert response.status_code == status.HTTP_200_OK


def test_create_post(client, auth_token, forum) -> None:
    response = client.post(
        "/api/v1/posts/",
        json={"forum_id": forum.id, "title": "Hello", "body": "First post"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["kind"] == "post"
    assert body["title"] == "Hello"
    assert body["forum_id"] == forum.id


def test_create_post_requires_auth(client, forum) -> None:
    response = client.post(
        "/api/v1/posts/",
        json={"forum_id": forum.id, "title": "Hello", "body": "First post"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_post_with_blank_fields(client, auth_token, forum) -> None:
    response = client.post(
        "/api/v1/posts/",
        json={"forum_id": forum.id, "title": " ", "body": "First post"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_listing_ranked_by_score_then_recency(
    client, auth_token, other_auth_token, admin_auth_token, make_post
) -> None:
    c = make_post(minutes=0, title="C")
    a = make_post(minutes=10, title="A")
    b = make_post(minutes=20, title="B")
    for headers in (auth_token, other_auth_token):
        _vote(client, headers, "post", c.id, 1)
    _vote(client, auth_token, "post", a.id, 1)
    _vote(client, auth_token, "post", b.id, 1)

    response = client.get("/api/v1/posts/")

    assert response.status_code == status.HTTP_200_OK
    assert _ids(response) == [c.id, b.id, a.id]
    assert response.json()[0]["upvotes"] == 2


def test_listing_includes_my_vote(client, auth_token, test_post) -> None:
    _vote(client, auth_token, "post", test_post.id, -1)

    mine = client.get("/api/v1/posts/", headers=auth_token).json()
    anonymous = client.get("/api/v1/posts/").json()

    assert mine[0]["my_vote"] == -1
    assert anonymous[0]["my_vote"] is None


def test_listing_by_forum_and_user(
    client, db_session, category, make_post, other_user, forum
) -> None:
    second_forum = Forum(title="Other", description="Other forum", category_id=category.id)
    db_session.add(second_forum)
    db_session.commit()
    in_forum = make_post(title="in forum")
    elsewhere = make_post(title="elsewhere", forum_id=second_forum.id, author=other_user)

    by_forum = client.get("/api/v1/posts/", params={"forum_id": forum.id})
    by_user = client.get("/api/v1/posts/", params={"user_id": str(other_user.uid)})

    assert _ids(by_forum) == [in_forum.id]
    assert _ids(by_user) == [elsewhere.id]


def test_listing_unknown_forum(client) -> None:
    response = client.get("/api/v1/posts/", params={"forum_id": 9999})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_listing_refreshes_after_vote(client, cache, auth_token, make_post) -> None:
    older = make_post(minutes=0, title="older")
    newer = make_post(minutes=5, title="newer")
    assert _ids(client.get("/api/v1/posts/")) == [newer.id, older.id]
    assert CacheKeys.GLOBAL_FEED in cache

    _vote(client, auth_token, "post", older.id, 1)

    assert CacheKeys.GLOBAL_FEED not in cache
    assert _ids(client.get("/api/v1/posts/")) == [older.id, newer.id]


def test_get_post(client, auth_token, test_post) -> None:
    _vote(client, auth_token, "post", test_post.id, 1)

    response = client.get(f"/api/v1/posts/{test_post.id}", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["item"]["id"] == test_post.id
    assert (body["upvotes"], body["downvotes"], body["my_vote"]) == (1, 0, 1)


def test_get_post_not_found(client) -> None:
    response = client.get("/api/v1/posts/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_cached_post_reflects_new_vote(client, cache, auth_token, clock, test_post) -> None:
    client.get(f"/api/v1/posts/{test_post.id}")
    assert CacheKeys.post(test_post.id) in cache

    _vote(client, auth_token, "post", test_post.id, -1)

    assert client.get(f"/api/v1/posts/{test_post.id}").json()["downvotes"] == 1


def test_post_cache_expires(client, db_session, cache, clock, test_post) -> None:
    client.get(f"/api/v1/posts/{test_post.id}")
    test_post.title = "Changed behind the cache"
    db_session.commit()

    assert client.get(f"/api/v1/posts/{test_post.id}").json()["item"]["title"] == "Test Post"
    clock.advance(10 * 60)
    assert (
        client.get(f"/api/v1/posts/{test_post.id}").json()["item"]["title"]
        == "Changed behind the cache"
    )


def test_update_post_by_author(client, auth_token, other_auth_token, test_post) -> None:
    url = f"/api/v1/posts/{test_post.id}"
    client.get(url)

    forbidden = client.put(url, json={"title": "x", "body": "y"}, headers=other_auth_token)
    response = client.put(url, json={"title": "Edited", "body": "Edited body"}, headers=auth_token)

    assert forbidden.status_code == status.HTTP_403_FORBIDDEN
    assert response.status_code == status.HTTP_200_OK
    assert client.get(url).json()["item"]["title"] == "Edited"


def test_delete_post(client, auth_token, other_auth_token, test_post) -> None:
    url = f"/api/v1/posts/{test_post.id}"
    client.get("/api/v1/posts/")

    assert client.delete(url, headers=other_auth_token).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(url, headers=auth_token).status_code == status.HTTP_204_NO_CONTENT
    assert client.get(url).status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/v1/posts/").json() == []


def test_admin_deletes_any_post(client, admin_auth_token, test_post) -> None:
    response = client.delete(f"/api/v1/posts/{test_post.id}", headers=admin_auth_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT


def test_comments_ranked(client, auth_token, test_post, make_comment, other_user) -> None:
    first = make_comment(test_post, minutes=0)
    second = make_comment(test_post, minutes=5, author=other_user)
    _vote(client, auth_token, "comment", first.id, 1)

    response = client.get(f"/api/v1/posts/{test_post.id}/comments", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    assert _ids(response) == [first.id, second.id]
    assert response.json()[0]["my_vote"] == 1


def test_comments_of_missing_post(client) -> None:
    response = client.get("/api/v1/posts/99999/comments")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_comment_lifecycle(client, auth_token, other_auth_token, test_post) -> None:
    comments_url = f"/api/v1/posts/{test_post.id}/comments"
    top = client.post(comments_url, json={"body": "top"}, headers=auth_token).json()
    reply = client.post(
        comments_url,
        json={"body": "reply", "parent_comment_id": top["id"]},
        headers=other_auth_token,
    ).json()
    nested = client.post(
        comments_url,
        json={"body": "nested", "parent_comment_id": reply["id"]},
        headers=auth_token,
    ).json()
    assert nested["parent_comment_id"] == top["id"]
    assert len(client.get(comments_url).json()) == 3

    edited = client.put(f"/api/v1/comments/{top['id']}", json={"body": "edited"}, headers=auth_token)
    forbidden = client.put(
        f"/api/v1/comments/{top['id']}", json={"body": "nope"}, headers=other_auth_token
    )
    assert edited.json()["body"] == "edited"
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    deleted = client.delete(f"/api/v1/comments/{top['id']}", headers=auth_token)
    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(comments_url).json() == []


def test_deleted_post_comment_tallies_are_evicted(
    client, cache, auth_token, other_auth_token, forum
) -> None:
    post = client.post(
        "/api/v1/posts/",
        json={"forum_id": forum.id, "title": "Doomed", "body": "Going away"},
        headers=auth_token,
    ).json()
    comment = client.post(
        f"/api/v1/posts/{post['id']}/comments", json={"body": "first"}, headers=auth_token
    ).json()
    _vote(client, other_auth_token, "comment", comment["id"], 1)
    assert client.get(f"/api/v1/votes/comment/{comment['id']}").json()["upvotes"] == 1
    assert CacheKeys.tally("comment", comment["id"]) in cache

    client.delete(f"/api/v1/posts/{post['id']}", headers=auth_token)

    assert CacheKeys.tally("comment", comment["id"]) not in cache
    new_post = client.post(
        "/api/v1/posts/",
        json={"forum_id": forum.id, "title": "Fresh", "body": "New post"},
        headers=auth_token,
    ).json()
    new_comment = client.post(
        f"/api/v1/posts/{new_post['id']}/comments", json={"body": "again"}, headers=auth_token
    ).json()
    tally = client.get(f"/api/v1/votes/comment/{new_comment['id']}").json()
    assert (tally["upvotes"], tally["downvotes"]) == (0, 0)
