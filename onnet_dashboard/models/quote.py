# onnet_dashboard/models/quote.py

from datetime import datetime

from .base import db
from onnet_dashboard.services.date_utils import format_long_date_es
from onnet_dashboard.services.quotes import (
    DEFAULT_ISV_RATE, line_total, price_without_isv, quote_totals, round_money
)


class Quote(db.Model):
    __tablename__ = 'quotes'

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(150), nullable=False)
    customer_address = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(30), nullable=False)
    customer_rtn = db.Column(db.String(30), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    quote_date = db.Column(db.Date, nullable=False)
    isv_rate = db.Column(db.Float, default=DEFAULT_ISV_RATE, nullable=False)
    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    items = db.relationship(
        'QuoteItem', backref='quote', cascade='all, delete-orphan',
        order_by='QuoteItem.position'
    )

    def totals(self):
        return quote_totals(self.items, self.isv_rate)

    def to_dict(self):
        """Serializes the quote with its computed totals."""
        return {
            'id': self.id,
            'customer_name': self.customer_name,
            'customer_address': self.customer_address,
            'customer_phone': self.customer_phone,
            'customer_rtn': self.customer_rtn,
            'notes': self.notes,
            'quote_date': self.quote_date.isoformat() if self.quote_date else None,
            'quote_date_long': format_long_date_es(self.quote_date) if self.quote_date else None,
            'isv_rate': self.isv_rate,
            'items': [item.to_dict(self.isv_rate) for item in self.items],
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            **self.totals(),
        }

    def __repr__(self):
        return f'<Quote id={self.id} customer={self.customer_name}>'


class QuoteItem(db.Model):
    __tablename__ = 'quote_items'

    id = db.Column(db.Integer, primary_key=True)
    quote_id = db.Column(db.Integer, db.ForeignKey('quotes.id'), nullable=False)
    position = db.Column(db.Integer, default=0)
    concept = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Float, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)  # ISV included

    def to_dict(self, isv_rate=DEFAULT_ISV_RATE):
        return {
            'id': self.id,
            'concept': self.concept,
            'description': self.description,
            'quantity': self.quantity,
            'unit_price': round_money(self.unit_price),
            'unit_price_without_isv': round_money(price_without_isv(self.unit_price, isv_rate)),
            'line_total': round_money(line_total(self.quantity, self.unit_price)),
        }
