# cli/commands/reminders.py
import click
from typing import Optional
from core.services.reminders import ReminderService
from cli.utils import cli_session, print_results

@click.group()
def reminders():
    """Due date reminder commands"""
    pass

@reminders.command()
@click.option('--due-soon-days', default=None, type=int,
              help='How many days ahead counts as due soon (default: DUE_SOON_DAYS)')
def send(due_soon_days: Optional[int]):
    """Notify borrowers of books due soon and both sides of overdue loans

    Safe to run repeatedly, e.g. from cron. A reminder is only sent once
    per request and type.

    Example:
        bookshare reminders send
        bookshare reminders send --due-soon-days 3
    """
    with cli_session() as session:
        sent = ReminderService(session).send_due_reminders(due_soon_days=due_soon_days)
    print_results(sent, label="Reminders sent:")
