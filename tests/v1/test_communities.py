# tests/v1/test_communities.py
"""Tests for community-related endpoints."""

from fastapi import status


def test_list_communities(client, community) -> None:
    response = client.get("/api/v1/communities/")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["data"][0]["name"] == "python"
    assert body["data"][0]["memberCount"] == 1
    assert "error" not in body


def test_list_communities_with_filter_and_select(client, community, other_auth_token) -> None:
    client.post(
        "/api/v1/communities/",
        json={"name": "rust", "description": "Crabs"},
        headers=other_auth_token,
    )
    client.post("/api/v1/communities/python/join", headers=other_auth_token)

    response = client.get(
        "/api/v1/communities/",
        params={"memberCount[gte]": "2", "select": "name,memberCount"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"] == [{"id": community.id, "name": "python", "memberCount": 2}]


def test_list_communities_rejects_unknown_filter(client, community) -> None:
    response = client.get("/api/v1/communities/", params={"creator[ne]": "1"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["success"] is False


def test_list_communities_pagination(client, make_user, headers_for) -> None:
    for name in ("one_", "two_", "three_"):
        client.post(
            "/api/v1/communities/",
            json={"name": name, "description": "d"},
            headers=headers_for(make_user()),
        )
    body = client.get("/api/v1/communities/", params={"page": 1, "limit": 2}).json()
    assert body["count"] == 2
    assert body["pagination"] == {"next": {"page": 2, "limit": 2}}
    body = client.get("/api/v1/communities/", params={"page": 2, "limit": 2}).json()
    assert body["count"] == 1
    assert body["pagination"] == {"prev": {"page": 1, "limit": 2}}


def test_get_community(client, community, test_user) -> None:
    response = client.get("/api/v1/communities/python")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["slug"] == "python"
    assert data["creator"] == {"id": test_user.id, "username": "alice"}
    assert data["moderators"] == [{"id": test_user.id, "username": "alice"}]
    assert data["rules"] == [{"title": "Be kind", "description": "No personal attacks"}]


def test_get_nonexistent_community(client) -> None:
    response = client.get("/api/v1/communities/nowhere")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"success": False, "error": "Community not found"}


def test_create_community(client, test_user, auth_token) -> None:
    response = client.post(
        "/api/v1/communities/",
        json={"name": "Ask_Agora", "description": "Questions", "rules": [{"title": "Be nice"}]},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["name"] == "Ask_Agora"
    assert data["slug"] == "ask_agora"
    assert data["memberCount"] == 1
    assert data["moderators"][0]["id"] == test_user.id


def test_create_community_requires_auth(client) -> None:
    response = client.post("/api/v1/communities/", json={"name": "anon", "description": "x"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "Not authenticated"


def test_create_community_with_bad_token(client) -> None:
    response = client.post(
        "/api/v1/communities/",
        json={"name": "anon", "description": "x"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_community_validation(client, auth_token) -> None:
    response = client.post(
        "/api/v1/communities/",
        json={"name": "bad name!", "description": "x"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["field"] == "name"


def test_create_duplicate_community(client, community, other_auth_token) -> None:
    response = client.post(
        "/api/v1/communities/",
        json={"name": "python", "description": "Copy"},
        headers=other_auth_token,
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert "already exists" in response.json()["error"]


def test_update_community_moderator_only(client, community, auth_token, other_auth_token) -> None:
    denied = client.put(
        "/api/v1/communities/python", json={"description": "Mine"}, headers=other_auth_token
    )
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    response = client.put(
        "/api/v1/communities/python", json={"description": "Updated"}, headers=auth_token
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["description"] == "Updated"


def test_join_and_leave(client, community, other_auth_token) -> None:
    response = client.post("/api/v1/communities/python/join", headers=other_auth_token)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"] == {"memberCount": 2}

    again = client.post("/api/v1/communities/python/join", headers=other_auth_token)
    assert again.status_code == status.HTTP_409_CONFLICT

    response = client.post("/api/v1/communities/python/leave", headers=other_auth_token)
    assert response.json()["data"] == {"memberCount": 1}

    again = client.post("/api/v1/communities/python/leave", headers=other_auth_token)
    assert again.status_code == status.HTTP_409_CONFLICT


def test_creator_cannot_leave(client, community, auth_token) -> None:
    response = client.post("/api/v1/communities/python/leave", headers=auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"] == "Creator cannot leave the community"
    assert client.get("/api/v1/communities/python").json()["data"]["memberCount"] == 1


def test_top_communities(client, community, other_auth_token) -> None:
    client.post(
        "/api/v1/communities/",
        json={"name": "rust", "description": "Crabs"},
        headers=other_auth_token,
    )
    client.post("/api/v1/communities/python/join", headers=other_auth_token)

    response = client.get("/api/v1/communities/top")
    assert response.status_code == status.HTTP_200_OK
    names = [item["name"] for item in response.json()["data"]]
    assert names == ["python", "rust"]


def test_community_posts_sorting(client, community, test_post, auth_token) -> None:
    response = client.get("/api/v1/communities/python/posts", params={"sort": "top"})
    assert response.status_code == status.HTTP_200_OK
    assert [post["id"] for post in response.json()["data"]] == [test_post.id]

    bad = client.get("/api/v1/communities/python/posts", params={"sort": "best"})
    assert bad.status_code == status.HTTP_400_BAD_REQUEST
