# cli/commands/search.py
import click
from core.services.book_search import BookSearchClient, map_category_to_genre

@click.group()
def search():
    """Book metadata lookup commands"""
    pass

@search.command()
@click.argument('query')
def books(query: str):
    """Search Google Books by title

    Example:
        bookshare search books "project hail mary"
    """
    results = BookSearchClient().search_books(query)
    if not results:
        click.echo(click.style("No results", fg='yellow'))
        return

    for result in results:
        click.echo("\n" + click.style(result.title, fg='cyan'))
        if result.authors:
            click.echo(f"  Author(s): {', '.join(result.authors)}")
        genre = map_category_to_genre(result.categories)
        if genre:
            click.echo(f"  Genre: {genre}")
        if result.isbn:
            click.echo(f"  ISBN: {result.isbn}")
        click.echo(click.style(f"  ID: {result.id}", fg='blue'))
