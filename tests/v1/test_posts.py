# tests/v1/test_posts.py
"""Tests for post-related endpoints."""

from fastapi import status


def test_create_post(client, community, auth_token, test_user) -> None:
    response = client.post(
        "/api/v1/posts/",
        json={"title": "Hello", "community": "python", "content": "Body"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["title"] == "Hello"
    assert data["author"] == {"id": test_user.id, "username": "alice"}
    assert data["community"] == {"id": community.id, "name": "python"}
    assert (data["upvotes"], data["downvotes"], data["voteScore"], data["commentCount"]) == (
        0,
        0,
        0,
        0,
    )


def test_create_post_unknown_community(client, auth_token) -> None:
    response = client.post(
        "/api/v1/posts/", json={"title": "Hello", "community": "ghost"}, headers=auth_token
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_create_post_requires_title(client, community, auth_token) -> None:
    response = client.post("/api/v1/posts/", json={"community": "python"}, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_get_post(client, test_post) -> None:
    response = client.get(f"/api/v1/posts/{test_post.id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["id"] == test_post.id


def test_get_nonexistent_post(client) -> None:
    response = client.get("/api/v1/posts/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "Post not found"


def test_list_posts_with_filters(client, community, test_post, other_user, test_user) -> None:
    response = client.get("/api/v1/posts/", params={"author": str(other_user.id)})
    assert [post["id"] for post in response.json()["data"]] == [test_post.id]

    response = client.get("/api/v1/posts/", params={"author[in]": str(test_user.id)})
    assert response.json()["data"] == []
    assert response.json()["count"] == 0


def test_list_posts_select(client, test_post) -> None:
    response = client.get("/api/v1/posts/", params={"select": "title"})
    assert response.json()["data"] == [{"id": test_post.id, "title": "Hello forum"}]

    bad = client.get("/api/v1/posts/", params={"select": "passwordHash"})
    assert bad.status_code == status.HTTP_400_BAD_REQUEST


def test_update_post_author_only(client, test_post, auth_token, other_auth_token) -> None:
    denied = client.put(f"/api/v1/posts/{test_post.id}", json={"title": "x"}, headers=auth_token)
    assert denied.status_code == status.HTTP_403_FORBIDDEN
    assert denied.json()["error"] == "Not authorized to update this post"

    response = client.put(
        f"/api/v1/posts/{test_post.id}", json={"title": "Edited"}, headers=other_auth_token
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["title"] == "Edited"
    assert response.json()["data"]["content"] == "First post"


def test_delete_post_by_stranger(client, test_post, third_auth_token) -> None:
    response = client.delete(f"/api/v1/posts/{test_post.id}", headers=third_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_delete_post_by_moderator(client, test_post, auth_token) -> None:
    response = client.delete(f"/api/v1/posts/{test_post.id}", headers=auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "data": {}}
    assert client.get(f"/api/v1/posts/{test_post.id}").status_code == status.HTTP_404_NOT_FOUND


def test_vote_toggle_and_switch(client, test_post, auth_token, other_auth_token) -> None:
    url = f"/api/v1/posts/{test_post.id}/vote"

    first = client.post(url, json={"value": 1}, headers=auth_token)
    assert first.status_code == status.HTTP_200_OK
    assert first.json()["data"] == {"voteScore": 1, "upvotes": 1, "downvotes": 0}

    retract = client.post(url, json={"value": 1}, headers=auth_token)
    assert retract.json()["data"] == {"voteScore": 0, "upvotes": 0, "downvotes": 0}

    down = client.post(url, json={"value": -1}, headers=other_auth_token)
    assert down.json()["data"] == {"voteScore": -1, "upvotes": 0, "downvotes": 1}

    post = client.get(f"/api/v1/posts/{test_post.id}").json()["data"]
    assert post["voteScore"] == -1


def test_vote_invalid_value(client, test_post, auth_token) -> None:
    response = client.post(
        f"/api/v1/posts/{test_post.id}/vote", json={"value": 2}, headers=auth_token
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_vote_requires_auth(client, test_post) -> None:
    response = client.post(f"/api/v1/posts/{test_post.id}/vote", json={"value": 1})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_vote_nonexistent_post(client, auth_token) -> None:
    response = client.post("/api/v1/posts/99999/vote", json={"value": 1}, headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_my_vote(client, test_post, auth_token) -> None:
    url = f"/api/v1/posts/{test_post.id}/my-vote"
    assert client.get(url, headers=auth_token).json()["data"] == {"value": 0}
    client.post(f"/api/v1/posts/{test_post.id}/vote", json={"value": -1}, headers=auth_token)
    assert client.get(url, headers=auth_token).json()["data"] == {"value": -1}


def test_comment_thread(client, test_post, auth_token, other_auth_token) -> None:
    url = f"/api/v1/posts/{test_post.id}/comments"
    root = client.post(url, json={"content": "root"}, headers=auth_token)
    assert root.status_code == status.HTTP_201_CREATED
    root_id = root.json()["data"]["id"]
    assert root.json()["data"]["parentId"] is None

    reply = client.post(url, json={"content": "reply", "parent": root_id}, headers=other_auth_token)
    assert reply.json()["data"]["parentId"] == root_id

    response = client.get(url)
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["count"] == 1
    assert body["data"][0]["content"] == "root"
    assert body["data"][0]["replies"][0]["content"] == "reply"
    assert body["data"][0]["replies"][0]["replies"] == []

    post = client.get(f"/api/v1/posts/{test_post.id}").json()["data"]
    assert post["commentCount"] == 2


def test_comment_on_missing_post(client, auth_token) -> None:
    response = client.post(
        "/api/v1/posts/99999/comments", json={"content": "hi"}, headers=auth_token
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_comment_requires_content(client, test_post, auth_token) -> None:
    response = client.post(
        f"/api/v1/posts/{test_post.id}/comments", json={"content": ""}, headers=auth_token
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
