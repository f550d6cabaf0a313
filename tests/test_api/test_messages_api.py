# tests/test_api/test_messages_api.py


def test_conversation(client, pending_request, owner, borrower, auth_headers):
    as_owner, as_borrower = auth_headers(owner), auth_headers(borrower)
    url = f"/api/borrow-requests/{pending_request.id}/messages"

    response = client.post(url, headers=as_borrower, json={"content": "  Is it in good shape? "})
    assert response.status_code == 201
    assert response.json()["content"] == "Is it in good shape?"
    client.post(url, headers=as_borrower, json={"content": "I can pick it up Friday"})

    assert client.get(f"{url}/unread-count", headers=as_owner).json() == {"count": 2}
    assert client.get("/api/messages/unread-count", headers=as_owner).json() == {"count": 2}
    assert client.get("/api/messages/unread-count", headers=as_borrower).json() == {"count": 0}

    messages = client.get(url, headers=as_owner).json()
    assert [m["content"] for m in messages] == ["Is it in good shape?", "I can pick it up Friday"]

    assert client.post(f"{url}/read", headers=as_owner).json() == {"count": 2}
    assert client.get(f"{url}/unread-count", headers=as_owner).json() == {"count": 0}

def test_empty_message(client, pending_request, borrower, auth_headers):
    response = client.post(f"/api/borrow-requests/{pending_request.id}/messages",
                           headers=auth_headers(borrower), json={"content": "   "})
    assert response.status_code == 400

def test_outsider_cannot_read_conversation(client, pending_request, stranger, auth_headers):
    response = client.get(f"/api/borrow-requests/{pending_request.id}/messages", headers=auth_headers(stranger))
    assert response.status_code == 403
