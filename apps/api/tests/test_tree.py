def _three_generations(client, founder, add_member, as_user):
    alice, family_id = founder("alice@example.com", "Alice")
    headers = as_user("alice@example.com")
    client.patch("/v1/me", json={"gender": "FEMALE", "personal_info": {"birthYear": 1950}}, headers=headers)
    bob = add_member(
        "alice@example.com",
        family_id,
        "Bob",
        gender="MALE",
        personal_info={"birthYear": 1948},
        initial_relationships=[{"related_member_id": alice["id"], "relationship_type": "SPOUSE"}],
    )
    kid = add_member(
        "alice@example.com",
        family_id,
        "Kid",
        personal_info={"birthYear": 1980},
        initial_relationships=[
            {"related_member_id": alice["id"], "relationship_type": "PARENT"},
            {"related_member_id": bob["id"], "relationship_type": "PARENT"},
        ],
    )
    grandkid = add_member(
        "alice@example.com",
        family_id,
        "Grandkid",
        personal_info={"birthYear": 2010},
        initial_relationships=[{"related_member_id": kid["id"], "relationship_type": "PARENT"}],
    )
    return family_id, headers, alice, bob, kid, grandkid


def test_tree_levels_and_connections(client, founder, add_member, as_user):
    family_id, headers, alice, bob, kid, grandkid = _three_generations(client, founder, add_member, as_user)

    response = client.get(f"/v1/families/{family_id}/tree", params={"center_member_id": kid["id"]}, headers=headers)
    assert response.status_code == 200
    tree = response.json()
    levels = {node["id"]: node["level"] for node in tree["nodes"]}
    assert levels == {alice["id"]: -1, bob["id"]: -1, kid["id"]: 0, grandkid["id"]: 1}
    assert tree["generations"] == 3
    assert tree["total_members"] == 4

    spouse_links = [item for item in tree["connections"] if item["type"] == "spouse"]
    assert len(spouse_links) == 1
    parent_links = {(item["from_id"], item["to_id"]) for item in tree["connections"] if item["type"] == "parent"}
    assert (alice["id"], kid["id"]) in parent_links
    assert (kid["id"], grandkid["id"]) in parent_links


def test_tree_statistics(client, founder, add_member, as_user):
    family_id, headers, alice, bob, _, grandkid = _three_generations(client, founder, add_member, as_user)

    stats = client.get(f"/v1/families/{family_id}/tree/statistics", headers=headers).json()
    assert stats["total_members"] == 4
    assert stats["total_families"] == 1
    assert stats["total_generations"] == 3
    assert stats["oldest_member"]["id"] == bob["id"]
    assert stats["youngest_member"]["id"] == grandkid["id"]
    assert stats["gender_distribution"] == {"male": 1, "female": 1, "other": 0, "unspecified": 2}
    assert stats["average_children_per_member"] == 0.75


def test_tree_requires_family_access(client, founder, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    founder("eve@example.com", "Eve", family_name="Does")

    response = client.get(f"/v1/families/{family_id}/tree", headers=as_user("eve@example.com"))
    assert response.status_code == 403
