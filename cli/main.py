# cli/main.py
import click
from core.utils.logging import setup_logging
from .commands.db import db
from .commands.reminders import reminders
from .commands.admin import admin
from .commands.search import search
from .commands.serve import serve

@click.group()
@click.option('--log-level', default=None, help='Override LOG_LEVEL for this run')
def cli(log_level):
    """BookShare CLI"""
    setup_logging(log_level)

cli.add_command(db)
cli.add_command(reminders)
cli.add_command(admin)
cli.add_command(search)
cli.add_command(serve)

def main():
    """Entry point for the CLI"""
    cli()

if __name__ == '__main__':
    main()
