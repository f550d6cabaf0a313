# tests/test_api/test_books_api.py

from io import BytesIO
from PIL import Image
from core.sa.models import Review


def test_list_books_is_public(client, sample_book):
    response = client.get("/api/books")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["page"] == 1
    assert body["items"][0]["owner"]["name"] == "Olivia Owner"

def test_filters_and_pagination(client, db_session, owner, make_user):
    from core.sa.repositories.book import BookRepository
    books = BookRepository(db_session)
    for n in range(3):
        books.create_book(owner.id, title=f"Mystery {n}", author="Agatha Christie", genre="Mystery")
    books.create_book(owner.id, title="Dune", author="Frank Herbert", genre="Science Fiction", borrowable=False)

    assert client.get("/api/books", params={"genre": "Mystery"}).json()["total"] == 3
    assert client.get("/api/books", params={"search": "herbert"}).json()["total"] == 1

    page = client.get("/api/books", params={"size": 2, "page": 2}).json()
    assert page["total"] == 4
    assert len(page["items"]) == 2

    available = client.get("/api/books/available").json()
    assert {b["title"] for b in available["items"]} == {"Mystery 0", "Mystery 1", "Mystery 2"}

def test_create_book(client, owner, auth_headers):
    response = client.post("/api/books", headers=auth_headers(owner), json={
        "title": "  The Hobbit ", "author": "J.R.R. Tolkien", "genre": "Fantasy", "condition": "fair",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "The Hobbit"
    assert body["owner_id"] == owner.id
    assert body["borrowable"] is True

def test_create_book_requires_auth(client):
    assert client.post("/api/books", json={"title": "X", "author": "Y"}).status_code == 401

def test_create_book_validation(client, owner, auth_headers):
    response = client.post("/api/books", headers=auth_headers(owner), json={"title": "", "author": "Y"})
    assert response.status_code == 422

def test_cover_image_url_validation(client, owner, auth_headers):
    headers = auth_headers(owner)
    response = client.post("/api/books", headers=headers, json={
        "title": "Dune", "author": "Frank Herbert", "cover_image_url": "not a url",
    })
    assert response.status_code == 422
    assert response.json()["detail"][0]["loc"] == ["body", "cover_image_url"]

    response = client.post("/api/books", headers=headers, json={
        "title": "Dune", "author": "Frank Herbert", "cover_image_url": "https://covers.example.com/dune.jpg",
    })
    assert response.status_code == 201
    book = response.json()
    assert book["cover_image_url"] == "https://covers.example.com/dune.jpg"

    response = client.put(f"/api/books/{book['id']}", headers=headers, json={"cover_image_url": ""})
    assert response.status_code == 200
    assert response.json()["cover_image_url"] is None

def test_book_detail_includes_rating(client, db_session, sample_book, borrower, stranger):
    db_session.add_all([
        Review(book_id=sample_book.id, user_id=borrower.id, rating=5),
        Review(book_id=sample_book.id, user_id=stranger.id, rating=4),
    ])
    db_session.commit()

    body = client.get(f"/api/books/{sample_book.id}").json()
    assert body["average_rating"] == 4.5
    assert body["review_count"] == 2
    assert client.get(f"/api/books/{sample_book.id}/rating").json()["average_rating"] == 4.5

def test_missing_book(client):
    response = client.get("/api/books/does-not-exist")
    assert response.status_code == 404

def test_only_owner_can_change_book(client, sample_book, owner, borrower, auth_headers):
    url = f"/api/books/{sample_book.id}"
    assert client.put(url, headers=auth_headers(borrower), json={"title": "Mine now"}).status_code == 403

    response = client.put(url, headers=auth_headers(owner), json={"borrowable": False})
    assert response.status_code == 200
    assert response.json()["borrowable"] is False
    assert response.json()["title"] == "Project Hail Mary"

def test_delete_book(client, sample_book, owner, auth_headers):
    assert client.delete(f"/api/books/{sample_book.id}", headers=auth_headers(owner)).status_code == 204
    assert client.get(f"/api/books/{sample_book.id}").status_code == 404

def test_upload_cover(client, sample_book, owner, auth_headers, tmp_path):
    from api.main import app
    from api.routes.users import get_storage
    from core.services.storage import ImageStorage

    app.dependency_overrides[get_storage] = lambda: ImageStorage(str(tmp_path), "http://books.test")
    image = BytesIO()
    Image.new("RGB", (40, 60)).save(image, format="PNG")

    response = client.post(
        f"/api/books/{sample_book.id}/cover",
        headers=auth_headers(owner),
        files={"file": ("cover.png", image.getvalue(), "image/png")},
    )
    assert response.status_code == 200
    assert response.json()["cover_image_url"].startswith("http://books.test/storage/books/book-covers/")

    response = client.post(
        f"/api/books/{sample_book.id}/cover",
        headers=auth_headers(owner),
        files={"file": ("notes.txt", b"plain text", "text/plain")},
    )
    assert response.status_code == 400
