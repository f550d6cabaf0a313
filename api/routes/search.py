# api/routes/search.py
from fastapi import APIRouter, Depends, Query

from core.exceptions import NotFoundError
from core.services.book_search import BookSearchClient, map_category_to_genre
from api.schemas.book import BookSearchResult

router = APIRouter(prefix="/search", tags=["search"])


def get_search_client() -> BookSearchClient:
    return BookSearchClient()


def _with_genre(result) -> BookSearchResult:
    return BookSearchResult(**result.to_dict(), genre=map_category_to_genre(result.categories))


@router.get("/books", response_model=list[BookSearchResult])
def search_books(
    q: str = Query(..., description="Title to look up"),
    client: BookSearchClient = Depends(get_search_client),
):
    """
    Look up book metadata by title to pre-fill the add-book form.

    Returns an empty list for queries under two characters or when the
    lookup service is unavailable.
    """
    return [_with_genre(result) for result in client.search_books(q)]


@router.get("/books/{volume_id}", response_model=BookSearchResult)
def get_book_details(volume_id: str, client: BookSearchClient = Depends(get_search_client)):
    result = client.get_book_details(volume_id)
    if result is None:
        raise NotFoundError("Book details", volume_id)
    return _with_genre(result)
