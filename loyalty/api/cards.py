"""
Cards API endpoints.

Handles:
- Customer enrollment and card lookup (by ID, QR code, customer, program)
- Stamp and points accrual at a store
- Reward redemption and voids
- Card status changes and the transaction ledger
"""
from flask import Blueprint, request, jsonify

from ..domain import (
    CustomerId,
    LoyaltyCardId,
    LoyaltyProgramId,
    RewardId,
    StaffId,
    StoreId,
    TransactionType,
)
from ..services import LoyaltyCardService
from ..utils.exceptions import ValidationError
from .request_utils import (
    get_json_body,
    optional_decimal,
    optional_id,
    parse_id,
    parse_int,
    query_flag,
    require_fields,
)

cards_bp = Blueprint('cards', __name__)


def _card_id(card_id):
    return parse_id(LoyaltyCardId, card_id, 'card_id')


def _accrual_response(card, transaction):
    return jsonify({
        'card': card.to_dict(),
        'transaction': transaction.to_dict()
    }), 201


# ==============================================================================
# ENROLLMENT & LOOKUP
# ==============================================================================

@cards_bp.route('', methods=['POST'])
def enroll():
    """
    Enroll a customer in a program.

    JSON body:
        program_id: Program to join (required)
        customer_id: Customer (required)
        store_id: Enrolling store; required when the program grants an
                  enrollment bonus
        staff_id: Staff member performing the enrollment

    Returns:
        The new card
    """
    data = get_json_body()
    require_fields(data, ['program_id', 'customer_id'])

    card = LoyaltyCardService().enroll(
        parse_id(LoyaltyProgramId, data['program_id'], 'program_id'),
        parse_id(CustomerId, data['customer_id'], 'customer_id'),
        store_id=optional_id(StoreId, data.get('store_id'), 'store_id'),
        staff_id=optional_id(StaffId, data.get('staff_id'), 'staff_id'),
    )

    return jsonify({'card': card.to_dict(include_transactions=True)}), 201


@cards_bp.route('', methods=['GET'])
def list_cards():
    """
    List cards of a customer or of a program.

    Query params:
        customer_id: Customer whose cards to list
        program_id: Program whose cards to list (used when no customer_id)
    """
    service = LoyaltyCardService()
    customer_id = request.args.get('customer_id')
    program_id = request.args.get('program_id')

    if customer_id:
        cards = service.list_customer_cards(parse_id(CustomerId, customer_id, 'customer_id'))
    elif program_id:
        cards = service.list_program_cards(parse_id(LoyaltyProgramId, program_id, 'program_id'))
    else:
        raise ValidationError('customer_id or program_id is required', field='customer_id')

    return jsonify({
        'cards': [c.to_dict() for c in cards],
        'count': len(cards)
    })


@cards_bp.route('/<card_id>', methods=['GET'])
def get_card(card_id):
    """
    Get a card.

    Query params:
        include_transactions: Embed the ledger (default false)
    """
    card = LoyaltyCardService().get_card(_card_id(card_id))
    return jsonify({'card': card.to_dict(include_transactions=query_flag('include_transactions'))})


@cards_bp.route('/qr/<path:qr_code>', methods=['GET'])
def get_card_by_qr_code(qr_code):
    """Look up the card behind a scanned QR code."""
    card = LoyaltyCardService().get_card_by_qr_code(qr_code)
    return jsonify({'card': card.to_dict()})


# ==============================================================================
# ACCRUAL
# ==============================================================================

@cards_bp.route('/<card_id>/stamps', methods=['POST'])
def issue_stamps(card_id):
    """
    Issue stamps to a stamp card.

    JSON body:
        quantity: Number of stamps (required, > 0)
        store_id: Issuing store (required)
        staff_id: Staff member
        pos_transaction_id: Reference in the point-of-sale system
    """
    data = get_json_body()
    require_fields(data, ['quantity', 'store_id'])

    card, transaction = LoyaltyCardService().issue_stamps(
        _card_id(card_id),
        parse_int(data['quantity'], 'quantity'),
        parse_id(StoreId, data['store_id'], 'store_id'),
        staff_id=optional_id(StaffId, data.get('staff_id'), 'staff_id'),
        pos_transaction_id=data.get('pos_transaction_id'),
    )
    return _accrual_response(card, transaction)


@cards_bp.route('/<card_id>/points', methods=['POST'])
def add_points(card_id):
    """
    Credit a purchase to a points card.

    JSON body:
        transaction_amount: Purchase amount (required); points are computed
                            by the program
        store_id: Store of the purchase (required)
        staff_id: Staff member
        pos_transaction_id: Reference in the point-of-sale system
        tier_multiplier: Multiplier applied to earned points (default 1)
    """
    data = get_json_body()
    require_fields(data, ['transaction_amount', 'store_id'])

    multiplier = optional_decimal(data.get('tier_multiplier'), 'tier_multiplier')
    options = {'tier_multiplier': multiplier} if multiplier is not None else {}

    card, transaction = LoyaltyCardService().add_points(
        _card_id(card_id),
        optional_decimal(data['transaction_amount'], 'transaction_amount'),
        parse_id(StoreId, data['store_id'], 'store_id'),
        staff_id=optional_id(StaffId, data.get('staff_id'), 'staff_id'),
        pos_transaction_id=data.get('pos_transaction_id'),
        **options,
    )
    return _accrual_response(card, transaction)


# ==============================================================================
# REDEMPTION & VOIDS
# ==============================================================================

@cards_bp.route('/<card_id>/redeem', methods=['POST'])
def redeem_reward(card_id):
    """
    Redeem a reward with a card's stamps or points.

    JSON body:
        reward_id: Reward to redeem (required)
        store_id: Redeeming store (required)
        staff_id: Staff member
    """
    data = get_json_body()
    require_fields(data, ['reward_id', 'store_id'])

    card, transaction = LoyaltyCardService().redeem_reward(
        _card_id(card_id),
        parse_id(RewardId, data['reward_id'], 'reward_id'),
        parse_id(StoreId, data['store_id'], 'store_id'),
        staff_id=optional_id(StaffId, data.get('staff_id'), 'staff_id'),
    )
    return _accrual_response(card, transaction)


@cards_bp.route('/<card_id>/void', methods=['POST'])
def void(card_id):
    """
    Take back stamps or points, e.g. after a refund.

    JSON body:
        quantity: Stamps to void (stamp cards)
        points_amount: Points to void (points cards)
        store_id: Store performing the void (required)
        staff_id: Staff member
        reason: Free-text reason, kept on the ledger entry
    """
    data = get_json_body()
    require_fields(data, ['store_id'])
    service = LoyaltyCardService()

    store_id = parse_id(StoreId, data['store_id'], 'store_id')
    staff_id = optional_id(StaffId, data.get('staff_id'), 'staff_id')
    reason = data.get('reason')

    if data.get('quantity') is not None:
        card, transaction = service.void_stamps(
            _card_id(card_id), parse_int(data['quantity'], 'quantity'), store_id,
            staff_id=staff_id, reason=reason,
        )
    elif data.get('points_amount') is not None:
        card, transaction = service.void_points(
            _card_id(card_id), optional_decimal(data['points_amount'], 'points_amount'), store_id,
            staff_id=staff_id, reason=reason,
        )
    else:
        raise ValidationError('quantity or points_amount is required', field='quantity')

    return _accrual_response(card, transaction)


# ==============================================================================
# STATUS & LEDGER
# ==============================================================================

@cards_bp.route('/<card_id>/status', methods=['PUT'])
def update_status(card_id):
    """
    Change a card's status.

    JSON body:
        status: 'active' (reactivate), 'suspended' or 'expired' (required)
    """
    data = get_json_body()
    require_fields(data, ['status'])

    card = LoyaltyCardService().update_status(_card_id(card_id), data['status'])
    return jsonify({'card': card.to_dict()})


@cards_bp.route('/<card_id>/transactions', methods=['GET'])
def list_transactions(card_id):
    """
    Card ledger, oldest first.

    Query params:
        type: Only transactions of this type
    """
    transaction_type = request.args.get('type')
    if transaction_type:
        try:
            transaction_type = TransactionType(transaction_type)
        except ValueError:
            raise ValidationError(
                f"type must be one of: {[t.value for t in TransactionType]}", field='type'
            ) from None

    transactions = LoyaltyCardService().get_transactions(_card_id(card_id), transaction_type or None)
    return jsonify({
        'transactions': [t.to_dict() for t in transactions],
        'count': len(transactions)
    })
