# cli/commands/db.py
import click
from core.sa.database import Database
from cli.utils import echo_success

@click.group()
def db():
    """Database setup commands"""
    pass

@db.command()
def init():
    """Create any missing tables

    Example:
        bookshare db init
    """
    Database().init_db()
    echo_success("Database tables created")

@db.command()
@click.confirmation_option(prompt='This deletes every table and all data. Continue?')
def drop():
    """Drop every table"""
    Database().drop_db()
    echo_success("Database tables dropped")
