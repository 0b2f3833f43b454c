from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError as SchemaError

from paycore.api.schemas import (
    ErrorResponseSchema,
    FeeResponseSchema,
    KindSchema,
    MethodRequestSchema,
    MethodSchema,
    PaymentRequestSchema,
    RefundRequestSchema,
    TransactionSchema,
)
from paycore.core.errors import PaymentError

api = Blueprint('api', __name__)

# HTTP status per error code; anything unlisted is a 400
ERROR_STATUS = {
    "invalid_amount": 422,
    "limit_exceeded": 422,
    "insufficient_balance": 402,
    "unknown_kind": 404,
    "unknown_method": 404,
    "unknown_transaction": 404,
    "capability_unsupported": 409,
    "capability_mismatch": 409,
    "duplicate_kind": 409,
    "duplicate_method": 409,
    "duplicate_refund": 409,
    "refund_exceeds_amount": 422,
}


def _services():
    return current_app.extensions["paycore"]


def _error(exc: PaymentError):
    body = ErrorResponseSchema(error=exc.code, detail=exc.message)
    return jsonify(body.model_dump()), ERROR_STATUS.get(exc.code, 400)


def _bad_request(exc: SchemaError):
    body = ErrorResponseSchema(error="bad_request", detail=str(exc))
    return jsonify(body.model_dump()), 400


def _transaction_body(tx):
    return TransactionSchema(**tx.to_dict()).model_dump()


def _method_body(method):
    processor = _services()["processor"]
    balance = processor.balance(method.method_id).value
    return MethodSchema(**method.to_dict(balance=balance)).model_dump()


@api.errorhandler(SchemaError)
def handle_schema_error(exc):
    return _bad_request(exc)


@api.route('/kinds', methods=['GET'])
def list_kinds():
    processor = _services()["processor"]
    kinds = []
    for kind in processor.registry.kinds():
        descriptor = processor.describe_kind(kind).unwrap()
        kinds.append(KindSchema(kind=kind, **descriptor.to_dict()).model_dump())
    return jsonify({'kinds': kinds}), 200


@api.route('/methods', methods=['POST'])
def create_method():
    data = MethodRequestSchema.model_validate(request.get_json(silent=True) or {})
    result = _services()["processor"].add_method(
        data.kind, method_id=data.method_id, balance=data.balance
    )
    if not result.ok:
        return _error(result.error)
    return jsonify(_method_body(result.value)), 201


@api.route('/methods/<method_id>', methods=['GET'])
def get_method(method_id):
    result = _services()["processor"].get_method(method_id)
    if not result.ok:
        return _error(result.error)
    return jsonify(_method_body(result.value)), 200


@api.route('/methods/<method_id>/fees', methods=['GET'])
def get_fees(method_id):
    amount = request.args.get('amount', '')
    result = _services()["processor"].get_fees(method_id, amount)
    if not result.ok:
        return _error(result.error)
    body = FeeResponseSchema(method_id=method_id, amount=amount, fees=str(result.value))
    return jsonify(body.model_dump()), 200


@api.route('/payments', methods=['POST'])
def create_payment():
    data = PaymentRequestSchema.model_validate(request.get_json(silent=True) or {})
    services = _services()
    result = services["processor"].process(data.method_id, data.amount)
    if not result.ok:
        return _error(result.error)
    tx = result.value
    services["sink"].append(tx)
    services["notifier"].notify("payment.completed", tx.to_dict())
    return jsonify(_transaction_body(tx)), 201


@api.route('/payments/<transaction_id>', methods=['GET'])
def get_payment(transaction_id):
    result = _services()["processor"].get_transaction(transaction_id)
    if not result.ok:
        return _error(result.error)
    return jsonify(_transaction_body(result.value)), 200


@api.route('/payments/<transaction_id>/refund', methods=['POST'])
def refund_payment(transaction_id):
    data = RefundRequestSchema.model_validate(request.get_json(silent=True) or {})
    services = _services()
    result = services["processor"].refund(transaction_id, data.amount)
    if not result.ok:
        return _error(result.error)
    tx = result.value
    services["sink"].append(tx)
    services["notifier"].notify("payment.refunded", tx.to_dict())
    return jsonify(_transaction_body(tx)), 200
