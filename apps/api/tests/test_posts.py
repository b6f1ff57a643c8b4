def _post(client, headers, **payload):
    body = {"content": "Sunday dinner at grandma's", "visibility": "FAMILY", **payload}
    response = client.post("/v1/posts", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_post_lifecycle(client, founder, add_member, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    add_member("alice@example.com", family_id, "Bob", email="bob@example.com")
    alice, bob = as_user("alice@example.com"), as_user("bob@example.com")

    post = _post(client, alice, family_id=family_id, image_urls=["https://img.example.com/1.jpg"])
    assert post["image_urls"] == ["https://img.example.com/1.jpg"]
    assert post["likes_count"] == 0

    detail = client.get(f"/v1/posts/{post['id']}", headers=bob)
    assert detail.status_code == 200
    assert detail.json()["comments"] == []

    not_author = client.patch(f"/v1/posts/{post['id']}", json={"content": "mine now"}, headers=bob)
    assert not_author.status_code == 403

    edited = client.patch(f"/v1/posts/{post['id']}", json={"content": "Dinner moved to Monday"}, headers=alice)
    assert edited.status_code == 200
    assert edited.json()["content"] == "Dinner moved to Monday"

    assert client.delete(f"/v1/posts/{post['id']}", headers=bob).status_code == 403
    assert client.delete(f"/v1/posts/{post['id']}", headers=alice).status_code == 204
    assert client.get(f"/v1/posts/{post['id']}", headers=alice).status_code == 404


def test_like_toggles_and_counts(client, founder, add_member, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    add_member("alice@example.com", family_id, "Bob", email="bob@example.com")
    post = _post(client, as_user("alice@example.com"), family_id=family_id)

    liked = client.post(f"/v1/posts/{post['id']}/like", headers=as_user("bob@example.com"))
    assert liked.status_code == 200
    assert liked.json() == {"liked": True, "likes_count": 1, "message": "post liked successfully"}

    listing = client.get("/v1/posts", headers=as_user("bob@example.com")).json()
    assert listing["items"][0]["is_liked_by_current_user"] is True

    unliked = client.post(f"/v1/posts/{post['id']}/like", headers=as_user("bob@example.com"))
    assert unliked.json()["liked"] is False
    assert unliked.json()["likes_count"] == 0


def test_outsiders_cannot_read_family_posts(client, founder, register, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    register("eve@example.com", "Eve")
    private = _post(client, as_user("alice@example.com"), family_id=family_id)
    public = _post(client, as_user("alice@example.com"), visibility="PUBLIC", content="Open house")

    assert client.get(f"/v1/posts/{private['id']}", headers=as_user("eve@example.com")).status_code == 403
    assert client.post(f"/v1/posts/{private['id']}/like", headers=as_user("eve@example.com")).status_code == 403
    assert client.get(f"/v1/posts/{public['id']}", headers=as_user("eve@example.com")).status_code == 200

    listing = client.get("/v1/posts", headers=as_user("eve@example.com")).json()
    assert [item["id"] for item in listing["items"]] == [public["id"]]
    assert listing["pagination"]["total"] == 1


def test_subfamily_posts_are_listed_for_relatives(client, founder, add_member, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    add_member("alice@example.com", family_id, "Bob", email="bob@example.com")
    post = _post(client, as_user("alice@example.com"), visibility="SUBFAMILY")

    listing = client.get("/v1/posts", headers=as_user("bob@example.com")).json()
    assert [item["id"] for item in listing["items"]] == [post["id"]]


def test_posting_into_a_foreign_family_is_denied(client, founder, as_user):
    founder("alice@example.com", "Alice")
    _, other_family = founder("eve@example.com", "Eve", family_name="Does")

    response = client.post(
        "/v1/posts",
        json={"content": "hi", "visibility": "FAMILY", "family_id": other_family},
        headers=as_user("alice@example.com"),
    )
    assert response.status_code == 403


def test_listing_is_paginated_newest_first(client, founder, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    headers = as_user("alice@example.com")
    ids = [_post(client, headers, content=f"post {index}", family_id=family_id)["id"] for index in range(3)]

    first = client.get("/v1/posts", params={"page": 1, "limit": 2}, headers=headers).json()
    second = client.get("/v1/posts", params={"page": 2, "limit": 2}, headers=headers).json()

    assert [item["id"] for item in first["items"]] == [ids[2], ids[1]]
    assert [item["id"] for item in second["items"]] == [ids[0]]
    assert first["pagination"] == {"current": 1, "limit": 2, "total": 3, "pages": 2}


def test_family_post_reaches_relatives_outside_that_family(client, founder, add_member, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    alice = as_user("alice@example.com")
    bob = add_member("alice@example.com", family_id, "Bob", email="bob@example.com")
    branch_id = client.post(
        "/v1/families", json={"name": "Branch", "parent_family_id": family_id}, headers=alice
    ).json()["id"]
    assert client.post(f"/v1/families/{branch_id}/members", json={"member_id": bob["id"]}, headers=alice).status_code == 201
    assert client.delete(f"/v1/families/{family_id}/members/{bob['id']}", headers=alice).status_code == 204

    post = _post(client, alice, family_id=family_id)

    # Bob left the post's family but still shares the branch with Alice.
    assert client.get(f"/v1/posts/{post['id']}", headers=as_user("bob@example.com")).status_code == 200
    listing = client.get("/v1/posts", headers=as_user("bob@example.com")).json()
    assert [item["id"] for item in listing["items"]] == [post["id"]]
