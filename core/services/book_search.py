# core/services/book_search.py
"""Book metadata lookup against the Google Books volumes API.

Used to pre-fill the add-book form. Lookups never raise: a failed request
is logged and treated as "no results".
"""
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Optional

import requests

from core.config import settings

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_RESULTS = 10

# First matching substring wins, so order matters
CATEGORY_GENRES = {
    'science fiction': 'Science Fiction',
    'non-fiction': 'Non-Fiction',
    'nonfiction': 'Non-Fiction',
    'fiction': 'Fiction',
    'fantasy': 'Fantasy',
    'mystery': 'Mystery',
    'thriller': 'Thriller',
    'romance': 'Romance',
    'biography': 'Biography',
    'autobiography': 'Biography',
    'history': 'History',
    'self-help': 'Self-Help',
    'poetry': 'Poetry',
}


@dataclass
class BookSearchResult:
    id: str
    title: str
    authors: List[str] = field(default_factory=list)
    description: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    image_url: Optional[str] = None
    isbn: Optional[str] = None
    page_count: Optional[int] = None
    publisher: Optional[str] = None
    published_date: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _to_result(item: dict) -> BookSearchResult:
    volume_info = item.get('volumeInfo') or {}
    image_links = volume_info.get('imageLinks') or {}
    identifiers = volume_info.get('industryIdentifiers') or []

    return BookSearchResult(
        id=item.get('id', ''),
        title=volume_info.get('title') or '',
        authors=volume_info.get('authors') or [],
        description=volume_info.get('description') or None,
        categories=volume_info.get('categories') or [],
        image_url=image_links.get('thumbnail') or image_links.get('smallThumbnail') or None,
        isbn=identifiers[0].get('identifier') if identifiers else None,
        page_count=volume_info.get('pageCount') or None,
        publisher=volume_info.get('publisher') or None,
        published_date=volume_info.get('publishedDate') or None,
    )


class BookSearchClient:
    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or settings.google_books_api_url).rstrip('/')
        self.api_key = api_key if api_key is not None else settings.google_books_api_key
        self.timeout = timeout or settings.http_timeout
        self.http = session or requests.Session()

    def _get(self, path: str, params: Optional[dict] = None) -> dict:
        params = dict(params or {})
        if self.api_key:
            params['key'] = self.api_key
        response = self.http.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def search_books(self, query: str) -> List[BookSearchResult]:
        """Search volumes by title.

        Args:
            query: Title text. Fewer than two characters returns nothing.

        Returns:
            Up to ten results, or an empty list if the lookup fails
        """
        query = (query or '').strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        try:
            data = self._get('/volumes', {
                'q': f'intitle:{query}',
                'maxResults': MAX_RESULTS,
                'printType': 'books',
            })
        except (requests.RequestException, ValueError) as e:
            logger.warning("Book search failed for %r: %s", query, e)
            return []

        return [_to_result(item) for item in data.get('items') or []]

    def get_book_details(self, volume_id: str) -> Optional[BookSearchResult]:
        """Fetch a single volume, or None if it cannot be loaded."""
        try:
            return _to_result(self._get(f'/volumes/{volume_id}'))
        except (requests.RequestException, ValueError) as e:
            logger.warning("Book details lookup failed for %s: %s", volume_id, e)
            return None


def map_category_to_genre(categories: Optional[List[str]]) -> Optional[str]:
    """Map the first Google Books category to one of our genres.

    Returns:
        The genre name, "Other" when nothing matches, or None with no categories
    """
    if not categories:
        return None

    category = categories[0].lower()
    for key, genre in CATEGORY_GENRES.items():
        if key in category:
            return genre
    return 'Other'
