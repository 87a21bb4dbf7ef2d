# onnet_dashboard/models/iptv.py

from dataclasses import dataclass
from typing import Optional

from .base import as_float, as_int, as_text, date_text

TV_STATUSES = ('Activo', 'Inactivo', 'Suspendido', 'Cancelado')
CURRENCIES = ('HNL', 'USD')


@dataclass
class TvPlan:
    id: int
    name: str
    monthly_price: float = 0.0
    duration: Optional[int] = None

    @classmethod
    def from_api(cls, data):
        return cls(
            id=as_int(data.get('id')),
            name=as_text(data.get('nombre')),
            monthly_price=as_float(data.get('precio_mensual', data.get('precio'))),
            duration=as_int(data.get('duracion')),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'monthly_price': self.monthly_price,
            'duration': self.duration,
        }


@dataclass
class TvStatus:
    id: int
    description: str

    @classmethod
    def from_api(cls, data):
        return cls(id=as_int(data.get('id')), description=as_text(data.get('descripcion')))

    def to_dict(self):
        return {'id': self.id, 'description': self.description}


@dataclass
class TvCustomer:
    id: int
    name: str
    username: str = ''
    address: str = ''
    phone: str = ''
    plan_id: Optional[int] = None
    status_id: Optional[int] = None
    created_on: Optional[str] = None
    starts_on: Optional[str] = None
    expires_on: Optional[str] = None
    amount_paid: float = 0.0
    currency: str = 'HNL'
    credits: int = 0
    notes: str = ''
    plan_name: Optional[str] = None
    plan_price: Optional[float] = None
    status_name: Optional[str] = None
    device_count: int = 0
    days_remaining: Optional[int] = None
    expiry_state: Optional[str] = None

    @classmethod
    def from_api(cls, data):
        plan_price = data.get('plan_precio_mensual', data.get('plan_precio'))
        return cls(
            id=as_int(data.get('id')),
            name=as_text(data.get('nombre')),
            username=as_text(data.get('usuario')),
            address=as_text(data.get('direccion')),
            phone=as_text(data.get('telefono')),
            plan_id=as_int(data.get('plantv_id')),
            status_id=as_int(data.get('estado_id')),
            created_on=date_text(data.get('fecha_creacion')),
            starts_on=date_text(data.get('fecha_inicio')),
            expires_on=date_text(data.get('fecha_expiracion')),
            amount_paid=as_float(data.get('monto_cancelado')),
            currency=as_text(data.get('moneda')) or 'HNL',
            credits=as_int(data.get('creditos_otorgados'), 0),
            notes=as_text(data.get('notas')),
            plan_name=data.get('plan_nombre'),
            plan_price=as_float(plan_price) if plan_price is not None else None,
            status_name=data.get('estado_nombre') or data.get('estado_descripcion'),
            device_count=as_int(data.get('total_dispositivos'), 0),
            days_remaining=as_int(data.get('dias_restantes')),
            expiry_state=data.get('estado_vencimiento'),
        )

    @staticmethod
    def to_api(data):
        mapping = {
            'name': 'nombre',
            'username': 'usuario',
            'address': 'direccion',
            'phone': 'telefono',
            'plan_id': 'plantv_id',
            'status_id': 'estado_id',
            'starts_on': 'fecha_inicio',
            'expires_on': 'fecha_expiracion',
            'amount_paid': 'monto_cancelado',
            'currency': 'moneda',
            'credits': 'creditos_otorgados',
            'notes': 'notas',
        }
        return {upstream: data[key] for key, upstream in mapping.items() if key in data}

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'username': self.username,
            'address': self.address,
            'phone': self.phone,
            'plan_id': self.plan_id,
            'plan_name': self.plan_name,
            'plan_price': self.plan_price,
            'status_id': self.status_id,
            'status': self.status_name,
            'starts_on': self.starts_on,
            'expires_on': self.expires_on,
            'amount_paid': self.amount_paid,
            'currency': self.currency,
            'credits': self.credits,
            'notes': self.notes,
            'device_count': self.device_count,
            'days_remaining': self.days_remaining,
            'expiry_state': self.expiry_state,
        }


@dataclass
class TvDevice:
    id: int
    customer_id: int
    description: str = ''
    mac_address: str = ''

    @classmethod
    def from_api(cls, data):
        return cls(
            id=as_int(data.get('id')),
            customer_id=as_int(data.get('cliente_id')),
            description=as_text(data.get('descripcion')),
            mac_address=as_text(data.get('mac_address')),
        )

    @staticmethod
    def to_api(data):
        payload = {}
        if 'customer_id' in data:
            payload['cliente_id'] = data['customer_id']
        if 'description' in data:
            payload['descripcion'] = data['description']
        if 'mac_address' in data:
            payload['mac_address'] = data['mac_address']
        return payload

    def to_dict(self):
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'description': self.description,
            'mac_address': self.mac_address,
        }
