import csv
import io


def test_import_links_members_by_name(client, founder, as_user):
    alice, family_id = founder("alice@example.com", "Alice")
    headers = as_user("alice@example.com")

    response = client.post(
        f"/v1/families/{family_id}/import",
        json={
            "members": [
                {"name": "Gran", "gender": "FEMALE", "personal_info": {"birthYear": 1930}},
                {"name": "Grandpa", "gender": "MALE", "spouse_names": ["gran"]},
                {"name": "Mum", "parent_names": ["Gran", "Grandpa"], "family_role": "viewer"},
                {"name": "mum"},
                {"name": "Stray", "parent_names": ["Nobody"]},
            ]
        },
        headers=headers,
    )
    assert response.status_code == 200
    result = response.json()
    assert result["total_records"] == 5
    assert result["successful_imports"] == 4
    assert result["failed_imports"] == 1
    assert result["success"] is False
    assert result["errors"][0]["row"] == 4
    assert result["warnings"][0]["message"] == "unknown member name: Nobody"

    mum = client.get(f"/v1/members/{result['member_ids']['Mum']}", headers=headers).json()
    assert {item["name"] for item in mum["parents"]} == {"Gran", "Grandpa"}
    assert mum["family_memberships"][0]["role"] == "VIEWER"


def test_import_rejects_blank_names(client, founder, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    headers = as_user("alice@example.com")

    response = client.post(
        f"/v1/families/{family_id}/import",
        json={"members": [{"name": "Kid"}, {"name": "   "}]},
        headers=headers,
    )
    assert response.status_code == 200
    result = response.json()
    assert result["successful_imports"] == 1
    assert result["failed_imports"] == 1
    assert result["errors"] == [{"row": 2, "field": "name", "message": "name must not be blank"}]
    assert list(result["member_ids"]) == ["Kid"]

    members = client.get(f"/v1/families/{family_id}/members", headers=headers).json()["items"]
    assert sorted(item["name"] for item in members) == ["Alice", "Kid"]


def test_import_requires_admin(client, founder, add_member, as_user):
    _, family_id = founder("alice@example.com", "Alice")
    add_member("alice@example.com", family_id, "Bob", email="bob@example.com")

    response = client.post(
        f"/v1/families/{family_id}/import", json={"members": [{"name": "X"}]}, headers=as_user("bob@example.com")
    )
    assert response.status_code == 403


def test_export_json_and_csv(client, founder, add_member, as_user):
    alice, family_id = founder("alice@example.com", "Alice")
    headers = as_user("alice@example.com")
    add_member(
        "alice@example.com",
        family_id,
        "Kid",
        personal_info={"birthYear": 2001},
        initial_relationships=[{"related_member_id": alice["id"], "relationship_type": "PARENT"}],
    )

    exported = client.get(f"/v1/families/{family_id}/export", headers=headers).json()
    by_name = {item["name"]: item for item in exported["members"]}
    assert by_name["Kid"]["parent_names"] == ["Alice"]
    assert by_name["Kid"]["personal_info"] is None

    with_info = client.get(
        f"/v1/families/{family_id}/export", params={"include_personal_info": True}, headers=headers
    ).json()
    assert {item["name"]: item["personal_info"] for item in with_info["members"]}["Kid"] == {"birthYear": 2001}

    as_csv = client.get(f"/v1/families/{family_id}/export", params={"format": "csv"}, headers=headers)
    assert as_csv.status_code == 200
    assert as_csv.headers["content-type"].startswith("text/csv")
    rows = list(csv.DictReader(io.StringIO(as_csv.text)))
    assert {row["name"]: row["parents"] for row in rows} == {"Alice": "", "Kid": "Alice"}
