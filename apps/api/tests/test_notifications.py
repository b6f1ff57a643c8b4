def test_activity_creates_notifications(client, founder, add_member, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    add_member("alice@example.com", family_id, "Bob", email="bob@example.com")
    alice, bob = as_user("alice@example.com"), as_user("bob@example.com")

    post = client.post(
        "/v1/posts", json={"content": "New baby!", "visibility": "FAMILY", "family_id": family_id}, headers=alice
    ).json()
    client.post(f"/v1/posts/{post['id']}/like", headers=bob)
    client.post(f"/v1/posts/{post['id']}/comments", json={"content": "Congrats"}, headers=bob)
    # Own activity never notifies the actor.
    client.post(f"/v1/posts/{post['id']}/like", headers=alice)

    bob_feed = client.get("/v1/notifications", headers=bob).json()
    assert [item["type"] for item in bob_feed["items"]] == ["NEW_POST"]
    assert bob_feed["items"][0]["related_member"]["name"] == "Alice"

    alice_feed = client.get("/v1/notifications", headers=alice).json()
    assert sorted(item["type"] for item in alice_feed["items"]) == ["NEW_COMMENT", "POST_LIKE"]
    assert alice_feed["unread_count"] == 2


def test_public_posts_do_not_fan_out(client, founder, add_member, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    add_member("alice@example.com", family_id, "Bob", email="bob@example.com")
    client.post("/v1/posts", json={"content": "Hello world", "visibility": "PUBLIC"}, headers=as_user("alice@example.com"))

    assert client.get("/v1/notifications/unread-count", headers=as_user("bob@example.com")).json() == {
        "unread_count": 0
    }


def test_read_state_and_cleanup(client, founder, add_member, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    add_member("alice@example.com", family_id, "Bob", email="bob@example.com")
    alice, bob = as_user("alice@example.com"), as_user("bob@example.com")
    for index in range(3):
        client.post("/v1/posts", json={"content": f"update {index}", "visibility": "FAMILY"}, headers=alice)

    items = client.get("/v1/notifications", headers=bob).json()["items"]
    assert len(items) == 3

    marked = client.patch(f"/v1/notifications/{items[0]['id']}", json={"is_read": True}, headers=bob)
    assert marked.status_code == 200
    assert marked.json()["is_read"] is True
    assert client.get("/v1/notifications/unread-count", headers=bob).json()["unread_count"] == 2

    unread = client.get("/v1/notifications", params={"is_read": False}, headers=bob).json()
    assert unread["pagination"]["total"] == 2

    assert client.patch(f"/v1/notifications/{items[0]['id']}", json={"is_read": True}, headers=alice).status_code == 404

    read_all = client.post("/v1/notifications/read-all", headers=bob)
    assert read_all.json()["count"] == 2

    assert client.delete(f"/v1/notifications/{items[1]['id']}", headers=bob).status_code == 204
    cleared = client.delete("/v1/notifications/read", headers=bob)
    assert cleared.json()["count"] == 2
    assert client.get("/v1/notifications", headers=bob).json()["items"] == []
