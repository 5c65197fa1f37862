from flask import Blueprint, request, jsonify
from marshmallow import ValidationError

from momopay.errors import InvalidInput
from momopay.schemas import InitiateCollectionSchema
from momopay.services.collection_service import CollectionService
from momopay.tasks.poll_collection_task import poll_collection
from momopay.utils.validators import validate_reference_id

collections_bp = Blueprint('collections', __name__)

initiate_schema = InitiateCollectionSchema()


@collections_bp.route('', methods=['POST'])
def initiate_collection():
    """
    Initiate a request-to-pay

    Body:
        {
            "amount": "100.00",
            "currency": "GHS",
            "payer": "0551234567",
            "country": "GH",
            "external_id": "ORD-12345",
            "payer_message": "Order 12345",
            "payee_note": "Thanks"
        }
    """
    try:
        data = initiate_schema.load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({
            'success': False,
            'error': 'Validation error',
            'details': e.messages
        }), 400

    result = CollectionService.initiate_collection(data)

    return jsonify({
        'success': True,
        'data': result
    }), 202


@collections_bp.route('/balance', methods=['GET'])
def get_balance():
    """Get the collection account balance"""
    return jsonify({
        'success': True,
        'data': CollectionService.get_balance()
    }), 200


@collections_bp.route('/<reference_id>', methods=['GET'])
def get_collection(reference_id):
    """
    Get request-to-pay status

    Path Parameters:
        - reference_id: Reference id returned on initiation
    """
    return jsonify({
        'success': True,
        'data': CollectionService.get_collection(reference_id)
    }), 200


@collections_bp.route('/<reference_id>/poll', methods=['POST'])
def start_polling(reference_id):
    """
    Poll request-to-pay status in the background

    Path Parameters:
        - reference_id: Reference id returned on initiation
    """
    ok, error = validate_reference_id(reference_id)
    if not ok:
        raise InvalidInput(error)

    task = poll_collection.delay(reference_id)

    return jsonify({
        'success': True,
        'data': {'task_id': task.id, 'reference_id': reference_id}
    }), 202
