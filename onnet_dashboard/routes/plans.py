# onnet_dashboard/routes/plans.py
from flask import Blueprint, jsonify
from flask_login import login_required
import logging

from onnet_dashboard.middleware.auth import admin_required
from onnet_dashboard.services.api_client import get_api_client
from onnet_dashboard.services.validation import (
    json_body, optional_text, positive_number, required_text
)

plans_bp = Blueprint('plans', __name__)
logger = logging.getLogger(__name__)


def _plan_payload(data):
    return {
        'name': required_text(data, 'name', 'Plan name'),
        'monthly_price': positive_number(data, 'monthly_price', 'Monthly price'),
        'description': optional_text(data, 'description'),
    }


@plans_bp.route('', methods=['GET'])
@login_required
def get_plans():
    return jsonify([plan.to_dict() for plan in get_api_client().list_plans()])


@plans_bp.route('/<int:plan_id>', methods=['GET'])
@login_required
def get_plan(plan_id):
    return jsonify(get_api_client().get_plan(plan_id).to_dict())


@plans_bp.route('', methods=['POST'])
@login_required
@admin_required
def create_plan():
    payload = _plan_payload(json_body())
    get_api_client().create_plan(payload)
    logger.info(f"Plan '{payload['name']}' created at {payload['monthly_price']}")
    return jsonify({'message': 'Plan created', 'plan': payload}), 201


@plans_bp.route('/<int:plan_id>', methods=['PUT'])
@login_required
@admin_required
def update_plan(plan_id):
    payload = _plan_payload(json_body())
    get_api_client().update_plan(plan_id, payload)
    logger.info(f"Plan {plan_id} updated")
    return jsonify({'message': 'Plan updated', 'plan': {'id': plan_id, **payload}})


@plans_bp.route('/<int:plan_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_plan(plan_id):
    get_api_client().delete_plan(plan_id)
    logger.info(f"Plan {plan_id} deleted")
    return jsonify({'message': 'Plan deleted successfully'})
