"""
Pytest fixtures for loyalty service tests.

Provides a per-test app with an in-memory database, a frozen clock, and
sample programs, rewards and cards.
"""
import pytest
from datetime import datetime
from decimal import Decimal

from loyalty import create_app
from loyalty.extensions import db
from loyalty.domain import (
    BrandId,
    CustomerId,
    LoyaltyProgramType,
    PointsConfig,
    StaffId,
    StoreId,
)
from loyalty.services import LoyaltyCardService, LoyaltyProgramService
from loyalty.utils.time_utils import FixedClock

NOW = datetime(2026, 3, 15, 10, 0, 0)


@pytest.fixture
def clock():
    """Clock frozen at NOW; tests move it with advance()/set()."""
    return FixedClock(NOW)


@pytest.fixture
def app(clock):
    """Create application for testing."""
    app = create_app('testing', clock=clock)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


# ==================== Identifiers ====================

@pytest.fixture
def brand_id():
    return BrandId.new()


@pytest.fixture
def store_id():
    return StoreId.new()


@pytest.fixture
def staff_id():
    return StaffId.new()


@pytest.fixture
def customer_id():
    return CustomerId.new()


# ==================== Services ====================

@pytest.fixture
def program_service(app, clock):
    return LoyaltyProgramService(clock=clock)


@pytest.fixture
def card_service(app, clock):
    return LoyaltyCardService(clock=clock)


# ==================== Sample data ====================

@pytest.fixture
def stamp_program(program_service, brand_id):
    """Ten-stamp coffee card program."""
    return program_service.create_program(
        brand_id,
        'Coffee Club',
        LoyaltyProgramType.STAMP,
        stamp_threshold=10,
    )


@pytest.fixture
def stamp_reward(program_service, stamp_program):
    return program_service.add_reward(stamp_program.id, 'Free coffee', 'Any size', 10)


@pytest.fixture
def points_program(program_service, brand_id):
    """One point per currency unit, 50 point enrollment bonus."""
    return program_service.create_program(
        brand_id,
        'Rewards Plus',
        LoyaltyProgramType.POINTS,
        points_config=PointsConfig(
            points_per_unit=Decimal('1'),
            minimum_points_for_redemption=100,
            enrollment_bonus_points=50,
        ),
    )


@pytest.fixture
def points_reward(program_service, points_program):
    return program_service.add_reward(points_program.id, '10% off', None, 100)


@pytest.fixture
def stamp_card(card_service, stamp_program, customer_id, store_id):
    return card_service.enroll(stamp_program.id, customer_id, store_id)


@pytest.fixture
def points_card(card_service, points_program, customer_id, store_id):
    return card_service.enroll(points_program.id, customer_id, store_id)
