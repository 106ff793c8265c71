"""
Programs API endpoints.

Handles:
- Loyalty program management for a brand
- Rewards catalog of a program
"""
from flask import Blueprint, request, jsonify

from ..domain import (
    BrandId,
    ExpirationPolicy,
    LoyaltyProgramId,
    LoyaltyProgramType,
    PointsConfig,
    RewardId,
)
from ..services import LoyaltyProgramService
from ..utils.exceptions import ValidationError
from .request_utils import (
    get_json_body,
    optional_datetime,
    optional_decimal,
    optional_int,
    parse_id,
    parse_int,
    query_flag,
    require_fields,
)

programs_bp = Blueprint('programs', __name__)


def _program_settings(data):
    """Settings shared by create and update, parsed from a JSON body."""
    points_config = data.get('points_config')
    if points_config is not None and not isinstance(points_config, dict):
        raise ValidationError('points_config must be an object', field='points_config')
    expiration = data.get('expiration_policy')
    if expiration is not None and not isinstance(expiration, dict):
        raise ValidationError('expiration_policy must be an object', field='expiration_policy')

    return {
        'stamp_threshold': optional_int(data.get('stamp_threshold'), 'stamp_threshold'),
        'points_conversion_rate': optional_decimal(data.get('points_conversion_rate'), 'points_conversion_rate'),
        'points_config': PointsConfig.from_dict(points_config),
        'daily_stamp_limit': optional_int(data.get('daily_stamp_limit'), 'daily_stamp_limit'),
        'minimum_transaction_amount': optional_decimal(
            data.get('minimum_transaction_amount'), 'minimum_transaction_amount'
        ),
        'expiration_policy': ExpirationPolicy.from_dict(expiration) if expiration is not None else None,
        'description': data.get('description'),
        'terms_and_conditions': data.get('terms_and_conditions'),
        'start_date': optional_datetime(data.get('start_date'), 'start_date'),
        'end_date': optional_datetime(data.get('end_date'), 'end_date'),
    }


def _reward_fields(data):
    require_fields(data, ['title', 'required_value'])
    return {
        'title': data['title'],
        'description': data.get('description'),
        'required_value': parse_int(data['required_value'], 'required_value'),
        'valid_from': optional_datetime(data.get('valid_from'), 'valid_from'),
        'valid_to': optional_datetime(data.get('valid_to'), 'valid_to'),
    }


# ==============================================================================
# PROGRAMS
# ==============================================================================

@programs_bp.route('', methods=['POST'])
def create_program():
    """
    Create a loyalty program.

    JSON body:
        brand_id: Owning brand (required)
        name: Program name (required)
        type: 'stamp' or 'points' (required)
        stamp_threshold: Stamps per reward (stamp programs)
        points_conversion_rate: Points per currency unit (points programs)
        points_config: {points_per_unit, minimum_points_for_redemption,
                        rounding_rule, enrollment_bonus_points}
        daily_stamp_limit: Max stamps per card per day
        minimum_transaction_amount: Smallest purchase that earns points
        expiration_policy: {type, value} or {day, month}
        description, terms_and_conditions, start_date, end_date

    Returns:
        Created program
    """
    data = get_json_body()
    require_fields(data, ['brand_id', 'name', 'type'])

    try:
        program_type = LoyaltyProgramType(data['type'])
    except ValueError:
        raise ValidationError(
            f"type must be one of: {[t.value for t in LoyaltyProgramType]}", field='type'
        ) from None

    program = LoyaltyProgramService().create_program(
        parse_id(BrandId, data['brand_id'], 'brand_id'),
        data['name'],
        program_type,
        **_program_settings(data),
    )

    return jsonify({
        'program': program.to_dict(include_rewards=True),
        'message': f'Program "{program.name}" created'
    }), 201


@programs_bp.route('', methods=['GET'])
def list_programs():
    """
    List programs of a brand.

    Query params:
        brand_id: Brand to list (required)
        active_only: Only active programs (default false)
    """
    brand_id = request.args.get('brand_id')
    if not brand_id:
        raise ValidationError('brand_id is required', field='brand_id')

    programs = LoyaltyProgramService().list_programs(
        parse_id(BrandId, brand_id, 'brand_id'),
        active_only=query_flag('active_only'),
    )

    return jsonify({
        'programs': [p.to_dict() for p in programs],
        'count': len(programs)
    })


@programs_bp.route('/<program_id>', methods=['GET'])
def get_program(program_id):
    """Get a program with its rewards catalog."""
    program = LoyaltyProgramService().get_program(parse_id(LoyaltyProgramId, program_id, 'program_id'))
    return jsonify({'program': program.to_dict(include_rewards=True)})


@programs_bp.route('/<program_id>', methods=['PUT'])
def update_program(program_id):
    """
    Update program settings.

    JSON body:
        Any field from create except brand_id and type; omitted fields are
        left unchanged.
    """
    data = get_json_body()
    program = LoyaltyProgramService().update_program(
        parse_id(LoyaltyProgramId, program_id, 'program_id'),
        name=data.get('name'),
        **_program_settings(data),
    )
    return jsonify({'program': program.to_dict(include_rewards=True)})


@programs_bp.route('/<program_id>/points-config', methods=['PUT'])
def update_points_config(program_id):
    """Replace the points configuration of a points program."""
    data = get_json_body()
    if not data:
        raise ValidationError('points_config is required', field='points_config')

    program = LoyaltyProgramService().update_points_config(
        parse_id(LoyaltyProgramId, program_id, 'program_id'),
        PointsConfig.from_dict(data),
    )
    return jsonify({'program': program.to_dict()})


@programs_bp.route('/<program_id>/activate', methods=['POST'])
def activate_program(program_id):
    program = LoyaltyProgramService().set_program_active(
        parse_id(LoyaltyProgramId, program_id, 'program_id'), True
    )
    return jsonify({'program': program.to_dict()})


@programs_bp.route('/<program_id>/deactivate', methods=['POST'])
def deactivate_program(program_id):
    program = LoyaltyProgramService().set_program_active(
        parse_id(LoyaltyProgramId, program_id, 'program_id'), False
    )
    return jsonify({'program': program.to_dict()})


# ==============================================================================
# REWARDS CATALOG
# ==============================================================================

@programs_bp.route('/<program_id>/rewards', methods=['GET'])
def list_rewards(program_id):
    """
    List rewards of a program.

    Query params:
        available: Only rewards redeemable right now (default false)
    """
    rewards = LoyaltyProgramService().list_rewards(
        parse_id(LoyaltyProgramId, program_id, 'program_id'),
        available_only=query_flag('available'),
    )
    return jsonify({
        'rewards': [r.to_dict() for r in rewards],
        'count': len(rewards)
    })


@programs_bp.route('/<program_id>/rewards', methods=['POST'])
def create_reward(program_id):
    """
    Add a reward to a program.

    JSON body:
        title: Reward title (required)
        required_value: Stamps or points needed (required)
        description: Reward description
        valid_from, valid_to: Availability window (ISO-8601)
    """
    data = get_json_body()
    reward = LoyaltyProgramService().add_reward(
        parse_id(LoyaltyProgramId, program_id, 'program_id'),
        **_reward_fields(data),
    )
    return jsonify({
        'reward': reward.to_dict(),
        'message': f'Reward "{reward.title}" created'
    }), 201


@programs_bp.route('/<program_id>/rewards/<reward_id>', methods=['PUT'])
def update_reward(program_id, reward_id):
    """Replace a reward's title, description, value and window."""
    data = get_json_body()
    reward = LoyaltyProgramService().update_reward(
        parse_id(LoyaltyProgramId, program_id, 'program_id'),
        parse_id(RewardId, reward_id, 'reward_id'),
        **_reward_fields(data),
    )
    return jsonify({'reward': reward.to_dict()})


@programs_bp.route('/<program_id>/rewards/<reward_id>/activate', methods=['POST'])
def activate_reward(program_id, reward_id):
    reward = LoyaltyProgramService().set_reward_active(
        parse_id(LoyaltyProgramId, program_id, 'program_id'),
        parse_id(RewardId, reward_id, 'reward_id'),
        True,
    )
    return jsonify({'reward': reward.to_dict()})


@programs_bp.route('/<program_id>/rewards/<reward_id>/deactivate', methods=['POST'])
def deactivate_reward(program_id, reward_id):
    reward = LoyaltyProgramService().set_reward_active(
        parse_id(LoyaltyProgramId, program_id, 'program_id'),
        parse_id(RewardId, reward_id, 'reward_id'),
        False,
    )
    return jsonify({'reward': reward.to_dict()})
