# onnet_dashboard/models/payment.py

from dataclasses import dataclass
from typing import Optional

from .base import as_float, as_int, as_text, date_text


@dataclass
class PaymentMethod:
    id: int
    description: str

    @classmethod
    def from_api(cls, data):
        return cls(id=as_int(data.get('id')), description=as_text(data.get('descripcion')))

    def to_dict(self):
        return {'id': self.id, 'description': self.description}


@dataclass
class Payment:
    """A payment as stored upstream, for internet or IPTV customers"""
    id: int
    customer_id: Optional[int]
    amount: float
    paid_on: Optional[str]
    method_id: Optional[int] = None
    method: str = ''
    reference: str = ''
    note: str = ''
    applied_month: Optional[int] = None
    applied_year: Optional[int] = None
    created_at: Optional[str] = None

    @classmethod
    def from_api(cls, data):
        customer_id = data.get('cliente_id')
        if customer_id is None:
            customer_id = data.get('clientetv_id', data.get('clienteTv_id'))
        return cls(
            id=as_int(data.get('id')),
            customer_id=as_int(customer_id),
            amount=as_float(data.get('monto')),
            paid_on=data.get('fecha_pago'),
            method_id=as_int(data.get('metodo_id')),
            method=as_text(data.get('metodo_pago_desc')),
            reference=as_text(data.get('referencia')),
            note=as_text(data.get('observaciones') or data.get('observacion')),
            applied_month=as_int(data.get('mes_aplicado')),
            applied_year=as_int(data.get('anio_aplicado')),
            created_at=data.get('created_at'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'amount': self.amount,
            'paid_on': self.paid_on,
            'method_id': self.method_id,
            'method': self.method,
            'reference': self.reference,
            'note': self.note,
            'applied_month': self.applied_month,
            'applied_year': self.applied_year,
        }


@dataclass
class Expense:
    id: int
    description: str
    amount: float
    date: Optional[str]

    @classmethod
    def from_api(cls, data):
        return cls(
            id=as_int(data.get('id')),
            description=as_text(data.get('descripcion')),
            amount=as_float(data.get('monto')),
            date=date_text(data.get('fecha')),
        )

    @staticmethod
    def to_api(data):
        return {
            'descripcion': data['description'],
            'monto': data['amount'],
            'fecha': data['date'],
        }

    def to_dict(self):
        return {
            'id': self.id,
            'description': self.description,
            'amount': self.amount,
            'date': self.date,
        }
