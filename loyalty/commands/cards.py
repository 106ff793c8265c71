"""
CLI Commands for card maintenance.

Meant to be run from cron:

# Card expiration (run daily at midnight UTC)
0 0 * * * cd /app && flask cards expire-due
"""
import click
from flask.cli import with_appcontext

from ..domain import LoyaltyProgramId
from ..services import LoyaltyCardService
from ..utils.exceptions import ValidationError


@click.group('cards')
def cards_cli():
    """Card maintenance commands."""
    pass


@cards_cli.command('expire-due')
@click.option('--program-id', help='Only expire cards of this program')
@click.option('--dry-run', is_flag=True, help='Preview without expiring cards')
@with_appcontext
def expire_due(program_id, dry_run):
    """Expire every card whose expiration date has passed."""
    try:
        program = LoyaltyProgramId.parse(program_id) if program_id else None
    except ValidationError as e:
        raise click.BadParameter(e.message, param_hint='--program-id')

    result = LoyaltyCardService().expire_due_cards(program_id=program, dry_run=dry_run)

    click.echo(f"{'[DRY RUN] ' if dry_run else ''}Cards due: {len(result['card_ids'])}")
    for card_id in result['card_ids']:
        click.echo(f"  {card_id}")
    click.echo(f"Expired: {result['expired']}")


def init_app(app):
    """Register card commands with the Flask app."""
    app.cli.add_command(cards_cli)
