# onnet_dashboard/models/employee.py

from dataclasses import dataclass
from typing import Optional

from .base import as_int, as_text


@dataclass
class JobRole:
    id: int
    name: str

    @classmethod
    def from_api(cls, data):
        return cls(id=as_int(data.get('id')), name=as_text(data.get('nombreCargo')))

    def to_dict(self):
        return {'id': self.id, 'name': self.name}


@dataclass
class Employee:
    id: int
    first_name: str
    last_name: str
    username: str
    role_id: Optional[int] = None

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_api(cls, data):
        return cls(
            id=as_int(data.get('id')),
            first_name=as_text(data.get('nombre')),
            last_name=as_text(data.get('apellido')),
            username=as_text(data.get('username')),
            role_id=as_int(data.get('cargo_id')),
        )

    @staticmethod
    def to_api(data):
        mapping = {
            'first_name': 'nombre',
            'last_name': 'apellido',
            'username': 'username',
            'role_id': 'cargo_id',
            'password': 'password',
        }
        return {upstream: data[key] for key, upstream in mapping.items() if key in data}

    def to_dict(self, roles=None):
        role_name = None
        if roles and self.role_id in roles:
            role_name = roles[self.role_id].name
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'username': self.username,
            'role_id': self.role_id,
            'role': role_name,
        }
