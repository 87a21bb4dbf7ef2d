# onnet_dashboard/models/customer.py

from dataclasses import dataclass, field
from typing import List, Optional

from .base import as_float, as_int, as_text, date_text

PAID = 'Pagado'
PENDING = 'Pendiente'
PARTIAL = 'Pagado Parcial'

STATUS_ACTIVE = 1
STATUS_INACTIVE = 2
STATUS_SUSPENDED = 3
STATUS_UNKNOWN = 0

STATUS_LABELS = {
    STATUS_ACTIVE: 'Activo',
    STATUS_INACTIVE: 'Inactivo',
    STATUS_SUSPENDED: 'Suspendido',
}


@dataclass
class Plan:
    id: int
    name: str
    monthly_price: float = 0.0
    description: str = ''

    @classmethod
    def from_api(cls, data):
        return cls(
            id=as_int(data.get('id')),
            name=as_text(data.get('nombre')),
            monthly_price=as_float(data.get('precio_mensual')),
            description=as_text(data.get('descripcion')),
        )

    @staticmethod
    def to_api(data):
        payload = {
            'nombre': data.get('name'),
            'precio_mensual': data.get('monthly_price'),
        }
        if 'description' in data:
            payload['descripcion'] = data.get('description')
        return payload

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'monthly_price': self.monthly_price,
            'description': self.description,
        }


@dataclass
class MonthlyStatus:
    month: int
    year: int
    status: str
    id: Optional[int] = None
    total_paid: Optional[float] = None

    @property
    def is_paid(self):
        return self.status == PAID

    @classmethod
    def from_api(cls, data):
        total_paid = data.get('total_pagado')
        return cls(
            id=as_int(data.get('id')),
            month=as_int(data.get('mes'), 0),
            year=as_int(data.get('anio'), 0),
            status=as_text(data.get('estado')),
            total_paid=as_float(total_paid) if total_paid is not None else None,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'month': self.month,
            'year': self.year,
            'status': self.status,
            'total_paid': self.total_paid,
        }


@dataclass
class Customer:
    id: int
    name: str
    ip: str = ''
    address: str = ''
    phone: str = ''
    onu_password: str = ''
    coordinates: str = ''
    tag: str = ''
    plan_id: Optional[int] = None
    payment_day: Optional[int] = None
    status_id: Optional[int] = None
    status_description: Optional[str] = None
    installed_on: Optional[str] = None
    plan: Optional[Plan] = None
    statuses: List[MonthlyStatus] = field(default_factory=list)

    @classmethod
    def from_api(cls, data):
        plan_data = data.get('plan')
        return cls(
            id=as_int(data.get('id')),
            name=as_text(data.get('nombre')),
            ip=as_text(data.get('ip')),
            address=as_text(data.get('direccion')),
            phone=as_text(data.get('telefono')),
            onu_password=as_text(data.get('pass_onu')),
            coordinates=as_text(data.get('coordenadas')),
            tag=as_text(data.get('vineta')),
            plan_id=as_int(data.get('plan_id')),
            payment_day=as_int(data.get('dia_pago')),
            status_id=as_int(data.get('estado_id')),
            status_description=data.get('descripcion') or None,
            installed_on=date_text(data.get('fecha_instalacion')),
            plan=Plan.from_api(plan_data) if isinstance(plan_data, dict) else None,
            statuses=[MonthlyStatus.from_api(s) for s in data.get('estados') or []],
        )

    @staticmethod
    def to_api(data):
        """Map a dashboard payload onto the upstream field names, skipping absent keys"""
        mapping = {
            'name': 'nombre',
            'ip': 'ip',
            'address': 'direccion',
            'phone': 'telefono',
            'onu_password': 'pass_onu',
            'coordinates': 'coordenadas',
            'tag': 'vineta',
            'plan_id': 'plan_id',
            'payment_day': 'dia_pago',
            'status_id': 'estado_id',
            'installed_on': 'fecha_instalacion',
        }
        return {upstream: data[key] for key, upstream in mapping.items() if key in data}

    @property
    def status_code(self):
        if self.status_id in STATUS_LABELS:
            return self.status_id
        description = (self.status_description or '').strip().lower()
        for code, label in STATUS_LABELS.items():
            if description == label.lower():
                return code
        return STATUS_UNKNOWN

    @property
    def status_label(self):
        if self.status_description:
            return self.status_description
        return STATUS_LABELS.get(self.status_code, 'Desconocido')

    def monthly_price(self, plans=None):
        """Price of the customer's plan, from the embedded plan or a {id: Plan} map"""
        if self.plan is not None:
            return self.plan.monthly_price
        if plans and self.plan_id in plans:
            return plans[self.plan_id].monthly_price
        return 0.0

    def plan_name(self, plans=None):
        if self.plan is not None:
            return self.plan.name
        if plans and self.plan_id in plans:
            return plans[self.plan_id].name
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'ip': self.ip,
            'address': self.address,
            'phone': self.phone,
            'coordinates': self.coordinates,
            'tag': self.tag,
            'plan_id': self.plan_id,
            'payment_day': self.payment_day,
            'status_id': self.status_code,
            'status': self.status_label,
            'installed_on': self.installed_on,
            'plan': self.plan.to_dict() if self.plan else None,
        }
