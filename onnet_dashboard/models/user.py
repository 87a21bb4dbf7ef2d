# onnet_dashboard/models/user.py

import base64
import json
import time

from flask_login import UserMixin

ROLE_ADMIN = 'admin'
ROLE_CASHIER = 'cajero'
ROLE_TECHNICIAN = 'tecnico'

DASHBOARD_ROUTES = {
    ROLE_ADMIN: '/admin',
    ROLE_CASHIER: '/cajero',
    ROLE_TECHNICIAN: '/tecnico',
}


def decode_token_payload(token):
    """Decode the payload segment of a JWT without verifying the signature"""
    segment = token.split('.')[1]
    segment += '=' * (-len(segment) % 4)
    return json.loads(base64.urlsafe_b64decode(segment.encode('ascii')))


def is_token_valid(token, now=None):
    """
    A token is usable while its `exp` claim is in the future.

    The signature is the upstream API's business; the dashboard only needs to
    know when to stop forwarding a token it knows is expired.
    """
    if not token:
        return False
    try:
        payload = decode_token_payload(token)
    except (IndexError, ValueError, UnicodeError):
        return False
    exp = payload.get('exp') if isinstance(payload, dict) else None
    if not isinstance(exp, (int, float)):
        return False
    return exp > (now if now is not None else time.time())


class User(UserMixin):
    """The logged-in dashboard user, rebuilt from the session on every request"""

    def __init__(self, id, username, role, first_name='', last_name='', token=None):
        self.id = id
        self.username = username
        self.role = (role or '').lower()
        self.first_name = first_name or ''
        self.last_name = last_name or ''
        self.token = token

    @classmethod
    def from_api(cls, data, token=None):
        role = data.get('role') or data.get('rol') or data.get('cargo') or ''
        return cls(
            id=data.get('id'),
            username=data.get('username') or '',
            role=role,
            first_name=data.get('nombre') or '',
            last_name=data.get('apellido') or '',
            token=token,
        )

    @classmethod
    def from_session(cls, data):
        return cls(
            id=data.get('id'),
            username=data.get('username'),
            role=data.get('role'),
            first_name=data.get('first_name'),
            last_name=data.get('last_name'),
            token=data.get('token'),
        )

    def to_session(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'token': self.token,
        }

    def get_id(self):
        return str(self.id)

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def dashboard_route(self):
        return DASHBOARD_ROUTES.get(self.role, '/')

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.get_full_name(),
            'role': self.role,
        }

    def __repr__(self):
        return f'<User id={self.id} username={self.username} role={self.role}>'
