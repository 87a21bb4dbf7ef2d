# onnet_dashboard/routes/employees.py
from flask import Blueprint, jsonify
from flask_login import login_required
import logging

from onnet_dashboard.middleware.auth import admin_required
from onnet_dashboard.services.api_client import ApiError, get_api_client
from onnet_dashboard.services.validation import (
    ValidationError, json_body, required_int, required_text
)

employees_bp = Blueprint('employees', __name__)
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _roles_by_id(client):
    return {role.id: role for role in client.list_job_roles()}


def _validate_password(data):
    password = data.get('password') or ''
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f'Password must be at least {MIN_PASSWORD_LENGTH} characters', 'password'
        )
    return password


@employees_bp.route('', methods=['GET'])
@login_required
@admin_required
def get_employees():
    client = get_api_client()
    roles = _roles_by_id(client)
    return jsonify([employee.to_dict(roles) for employee in client.list_employees()])


@employees_bp.route('/roles', methods=['GET'])
@login_required
@admin_required
def get_roles():
    return jsonify([role.to_dict() for role in get_api_client().list_job_roles()])


@employees_bp.route('', methods=['POST'])
@login_required
@admin_required
def create_employee():
    """Create an employee together with their login"""
    data = json_body()
    payload = {
        'first_name': required_text(data, 'first_name', 'First name'),
        'last_name': required_text(data, 'last_name', 'Last name'),
        'username': required_text(data, 'username', 'Username'),
        'role_id': required_int(data, 'role_id', 'Job role'),
        'password': _validate_password(data),
    }

    try:
        get_api_client().create_employee(payload)
    except ApiError as e:
        if e.status_code == 409:
            logger.warning(f"Employee username '{payload['username']}' already exists")
            return jsonify({'error': 'Username already exists', 'field': 'username'}), 409
        raise

    logger.info(f"Employee '{payload['username']}' created")
    payload.pop('password')
    return jsonify({'message': 'Employee created', 'employee': payload}), 201


@employees_bp.route('/<int:employee_id>', methods=['PUT'])
@login_required
@admin_required
def update_employee(employee_id):
    data = json_body()
    payload = {}
    for field, label in (('first_name', 'First name'), ('last_name', 'Last name'), ('username', 'Username')):
        if field in data:
            payload[field] = required_text(data, field, label)
    if 'role_id' in data:
        payload['role_id'] = required_int(data, 'role_id', 'Job role')
    if data.get('password'):
        payload['password'] = _validate_password(data)
    if not payload:
        raise ValidationError('No fields to update')

    try:
        get_api_client().update_employee(employee_id, payload)
    except ApiError as e:
        if e.status_code == 409:
            return jsonify({'error': 'Username already exists', 'field': 'username'}), 409
        raise

    logger.info(f"Employee {employee_id} updated")
    return jsonify({'message': 'Employee updated'})


@employees_bp.route('/<int:employee_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_employee(employee_id):
    get_api_client().delete_employee(employee_id)
    logger.info(f"Employee {employee_id} deleted")
    return jsonify({'message': 'Employee deleted successfully'})
