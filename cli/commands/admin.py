# cli/commands/admin.py
import click
from sqlalchemy.orm import Session
from core.sa.models import User
from core.sa.repositories.user import UserRepository, AuthSessionRepository
from cli.utils import cli_session, echo_error, echo_success, print_user

@click.group()
def admin():
    """User administration commands"""
    pass

def _get_user(session: Session, email: str) -> User:
    user = UserRepository(session).get_by_email(email)
    if user is None:
        echo_error(f"No user with email {email}")
        raise click.Abort()
    return user

@admin.command()
@click.argument('email')
def promote(email: str):
    """Give a user admin rights

    Example:
        bookshare admin promote alice@example.com
    """
    with cli_session() as session:
        user = UserRepository(session).set_admin(_get_user(session, email).id, True)
        echo_success(f"{user.email} is now an admin")
        print_user(user)

@admin.command()
@click.argument('email')
def demote(email: str):
    """Remove a user's admin rights"""
    with cli_session() as session:
        user = UserRepository(session).set_admin(_get_user(session, email).id, False)
        echo_success(f"{user.email} is no longer an admin")
        print_user(user)

@admin.command()
@click.argument('email')
@click.option('--reason', required=True, help='Reason shown to other admins')
def suspend(email: str, reason: str):
    """Suspend a user and sign them out everywhere"""
    with cli_session() as session:
        user = UserRepository(session).suspend_user(_get_user(session, email).id, reason)
        revoked = AuthSessionRepository(session).revoke_all_for_user(user.id)
        echo_success(f"Suspended {user.email} ({revoked} sessions revoked)")
        print_user(user)

@admin.command()
@click.argument('email')
def unsuspend(email: str):
    """Lift a user's suspension"""
    with cli_session() as session:
        user = UserRepository(session).unsuspend_user(_get_user(session, email).id)
        echo_success(f"Unsuspended {user.email}")
        print_user(user)
