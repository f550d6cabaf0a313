import click
from typing import Dict, Optional
from contextlib import contextmanager
from core.sa.database import Database
from core.sa.models import User


@contextmanager
def cli_session(database: Optional[Database] = None):
    """Session for one command, committed if the command succeeds"""
    with (database or Database()).session_scope() as session:
        yield session


def echo_success(message: str) -> None:
    click.echo(click.style(message, fg='green'))


def echo_error(message: str) -> None:
    click.echo(click.style(message, fg='red'), err=True)


def print_results(counts: Dict[str, int], label: str = "Results:") -> None:
    """Print a block of named counters"""
    click.echo("\n" + click.style(label, fg='blue'))
    for name, value in counts.items():
        click.echo(click.style(f"{name.replace('_', ' ').capitalize()}: ", fg='blue') +
                   click.style(str(value), fg='cyan'))


def print_user(user: User) -> None:
    click.echo(click.style("User: ", fg='blue') + click.style(f"{user.name} <{user.email}>", fg='cyan'))
    click.echo(click.style("  Admin: ", fg='blue') + str(user.is_admin))
    if user.suspended:
        click.echo(click.style("  Suspended: ", fg='yellow') +
                   f"{user.suspended_at:%Y-%m-%d %H:%M} ({user.suspended_reason or 'no reason given'})")
