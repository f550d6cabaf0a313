# tests/test_api/test_communities_api.py

import pytest


@pytest.fixture
def community_id(client, owner, auth_headers):
    response = client.post("/api/communities", headers=auth_headers(owner), json={
        "name": "Downtown Readers", "location": "Springfield",
    })
    assert response.status_code == 201
    return response.json()["id"]

def test_create_and_view(client, community_id, owner, auth_headers):
    detail = client.get(f"/api/communities/{community_id}").json()
    assert detail["member_count"] == 1
    assert detail["user_role"] is None

    detail = client.get(f"/api/communities/{community_id}", headers=auth_headers(owner)).json()
    assert detail["user_role"] == "owner"

    mine = client.get("/api/communities/mine", headers=auth_headers(owner)).json()
    assert [(c["id"], c["role"]) for c in mine] == [(community_id, "owner")]

def test_join_and_share_books(client, community_id, owner, borrower, sample_book, auth_headers):
    response = client.post(f"/api/communities/{community_id}/join", headers=auth_headers(borrower))
    assert response.status_code == 201
    assert response.json()["status"] == "approved"

    response = client.post(f"/api/communities/{community_id}/books/{sample_book.id}", headers=auth_headers(borrower))
    assert response.status_code == 403

    response = client.post(f"/api/communities/{community_id}/books/{sample_book.id}", headers=auth_headers(owner))
    assert response.status_code == 201

    books = client.get(f"/api/communities/{community_id}/books").json()
    assert [b["id"] for b in books] == [sample_book.id]
    assert [c["id"] for c in client.get(f"/api/books/{sample_book.id}/communities").json()] == [community_id]

    activity = client.get(f"/api/communities/{community_id}/activity").json()
    assert {a["type"] for a in activity} == {"member_joined", "book_added"}

def test_invitation_flow(client, community_id, owner, stranger, auth_headers):
    response = client.post(f"/api/communities/{community_id}/invitations", headers=auth_headers(owner),
                           json={"invitee_id": stranger.id})
    assert response.status_code == 201
    invitation_id = response.json()["id"]

    mine = client.get("/api/invitations", headers=auth_headers(stranger)).json()
    assert [i["id"] for i in mine] == [invitation_id]

    response = client.post(f"/api/invitations/{invitation_id}/accept", headers=auth_headers(stranger))
    assert response.json()["user_id"] == stranger.id
    members = client.get(f"/api/communities/{community_id}/members").json()
    assert len(members) == 2

def test_members_cannot_manage(client, community_id, borrower, stranger, auth_headers):
    client.post(f"/api/communities/{community_id}/join", headers=auth_headers(borrower))
    response = client.put(f"/api/communities/{community_id}", headers=auth_headers(borrower),
                          json={"name": "Taken over"})
    assert response.status_code == 403
    response = client.post(f"/api/communities/{community_id}/invitations", headers=auth_headers(borrower),
                           json={"invitee_id": stranger.id})
    assert response.status_code == 403

def test_owner_cannot_leave(client, community_id, owner, auth_headers):
    response = client.post(f"/api/communities/{community_id}/leave", headers=auth_headers(owner))
    assert response.status_code == 403
