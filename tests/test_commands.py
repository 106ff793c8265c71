"""
Tests for the card maintenance CLI commands.
"""
import pytest

from loyalty.domain import CardStatus, CustomerId, ExpirationPolicy, ExpirationType, LoyaltyProgramType
from loyalty.extensions import db


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def due_card(card_service, program_service, brand_id, clock):
    program = program_service.create_program(
        brand_id, 'Weekly', LoyaltyProgramType.STAMP, stamp_threshold=5,
        expiration_policy=ExpirationPolicy.after(ExpirationType.DAYS, 7),
    )
    card = card_service.enroll(program.id, CustomerId.new())
    clock.advance(days=10)
    return card


class TestExpireDue:
    """Tests for `flask cards expire-due`."""

    def test_dry_run(self, runner, card_service, due_card):
        result = runner.invoke(args=['cards', 'expire-due', '--dry-run'])

        assert result.exit_code == 0
        assert '[DRY RUN] Cards due: 1' in result.output
        assert str(due_card.id) in result.output
        assert 'Expired: 0' in result.output

        db.session.expire_all()
        assert card_service.get_card(due_card.id).status == CardStatus.ACTIVE

    def test_expires_cards(self, runner, card_service, due_card):
        result = runner.invoke(args=['cards', 'expire-due'])

        assert result.exit_code == 0
        assert 'Expired: 1' in result.output

        db.session.expire_all()
        assert card_service.get_card(due_card.id).status == CardStatus.EXPIRED

    def test_filter_by_other_program(self, runner, due_card, stamp_program):
        result = runner.invoke(args=['cards', 'expire-due', '--program-id', str(stamp_program.id)])

        assert result.exit_code == 0
        assert 'Cards due: 0' in result.output

    def test_invalid_program_id(self, runner):
        result = runner.invoke(args=['cards', 'expire-due', '--program-id', 'weekly'])

        assert result.exit_code != 0
        assert '--program-id' in result.output
