# onnet_dashboard/models/receipt.py

from datetime import datetime

from .base import db

KIND_INTERNET = 'internet'
KIND_TV = 'tv'

MODE_SINGLE = 'simple'
MODE_MULTIPLE = 'multiple'
MODE_RENEWAL = 'renewal'


class Receipt(db.Model):
    """
    A payment receipt issued by the cash desk.

    The upstream API records the payment itself; the amount received from the
    customer and the change given only exist here.
    """
    __tablename__ = 'receipts'

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.String(32), nullable=False, index=True)
    kind = db.Column(db.String(16), default=KIND_INTERNET, nullable=False)
    mode = db.Column(db.String(16), default=MODE_SINGLE, nullable=False)

    customer_id = db.Column(db.Integer, nullable=False)
    customer_name = db.Column(db.String(150))
    customer_phone = db.Column(db.String(30))
    customer_address = db.Column(db.String(255))
    plan_name = db.Column(db.String(100))
    plan_price = db.Column(db.Float)

    method = db.Column(db.String(100))
    reference = db.Column(db.String(100))
    note = db.Column(db.Text)
    paid_on = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD as sent upstream
    months = db.Column(db.JSON, default=list)
    payment_ids = db.Column(db.JSON, default=list)

    total = db.Column(db.Float, nullable=False)
    received = db.Column(db.Float, nullable=False)
    change = db.Column(db.Float, nullable=False)

    previous_expiry = db.Column(db.String(10))
    new_expiry = db.Column(db.String(10))

    issued_by = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'number': self.number,
            'kind': self.kind,
            'mode': self.mode,
            'customer': {
                'id': self.customer_id,
                'name': self.customer_name,
                'phone': self.customer_phone,
                'address': self.customer_address,
            },
            'plan': {'name': self.plan_name, 'monthly_price': self.plan_price},
            'method': self.method,
            'reference': self.reference,
            'note': self.note,
            'paid_on': self.paid_on,
            'months': self.months or [],
            'payment_ids': self.payment_ids or [],
            'total': self.total,
            'received': self.received,
            'change': self.change,
            'previous_expiry': self.previous_expiry,
            'new_expiry': self.new_expiry,
            'issued_by': self.issued_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Receipt id={self.id} number={self.number} kind={self.kind}>'
