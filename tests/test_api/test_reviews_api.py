# tests/test_api/test_reviews_api.py


def test_review_lifecycle(client, sample_book, borrower, auth_headers):
    headers = auth_headers(borrower)
    response = client.post("/api/reviews", headers=headers, json={
        "book_id": sample_book.id, "rating": 4, "comment": "Couldn't put it down",
    })
    assert response.status_code == 201
    review = response.json()
    assert review["user"]["name"] == "Ben Borrower"

    assert client.get(f"/api/reviews/check/{sample_book.id}", headers=headers).json() == {"reviewed": True}
    assert client.post("/api/reviews", headers=headers,
                       json={"book_id": sample_book.id, "rating": 5}).status_code == 409

    response = client.put(f"/api/reviews/{review['id']}", headers=headers, json={"rating": 5})
    assert response.json()["rating"] == 5
    assert response.json()["comment"] == "Couldn't put it down"

    assert len(client.get(f"/api/books/{sample_book.id}/reviews").json()) == 1
    assert client.delete(f"/api/reviews/{review['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/reviews/{review['id']}").status_code == 404

def test_rating_range(client, sample_book, borrower, auth_headers):
    response = client.post("/api/reviews", headers=auth_headers(borrower),
                           json={"book_id": sample_book.id, "rating": 6})
    assert response.status_code == 422

def test_only_author_edits(client, sample_book, borrower, stranger, auth_headers):
    review = client.post("/api/reviews", headers=auth_headers(borrower),
                         json={"book_id": sample_book.id, "rating": 3}).json()
    response = client.put(f"/api/reviews/{review['id']}", headers=auth_headers(stranger), json={"rating": 1})
    assert response.status_code == 403
