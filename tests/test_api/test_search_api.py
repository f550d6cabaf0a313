# tests/test_api/test_search_api.py

import pytest
from unittest.mock import MagicMock
from api.main import app
from api.routes.search import get_search_client
from core.services.book_search import BookSearchResult


@pytest.fixture
def search_client(client):
    search = MagicMock()
    app.dependency_overrides[get_search_client] = lambda: search
    return search

def test_search_books_adds_genre(client, search_client):
    search_client.search_books.return_value = [
        BookSearchResult(id="vol-1", title="Dune", authors=["Frank Herbert"], categories=["Science Fiction"]),
    ]
    body = client.get("/api/search/books", params={"q": "dune"}).json()
    assert body[0]["genre"] == "Science Fiction"
    search_client.search_books.assert_called_once_with("dune")

def test_missing_volume(client, search_client):
    search_client.get_book_details.return_value = None
    assert client.get("/api/search/books/unknown").status_code == 404
