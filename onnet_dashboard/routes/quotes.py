# onnet_dashboard/routes/quotes.py
from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user
import logging

from onnet_dashboard.models import Quote, QuoteItem, db
from onnet_dashboard.services.date_utils import today_local
from onnet_dashboard.services.file_utils import generate_quote_pdf, pdf_response
from onnet_dashboard.services.quotes import DEFAULT_ISV_RATE, quote_filename, validate_quote_payload
from onnet_dashboard.services.validation import json_body

quotes_bp = Blueprint('quotes', __name__)
logger = logging.getLogger(__name__)


@quotes_bp.route('', methods=['GET'])
@login_required
def get_quotes():
    """Stored quotes, newest first, optionally filtered by customer name"""
    query = Quote.query
    term = (request.args.get('q') or '').strip()
    if term:
        query = query.filter(Quote.customer_name.ilike(f'%{term}%'))
    quotes = query.order_by(Quote.quote_date.desc(), Quote.id.desc()).all()
    return jsonify([quote.to_dict() for quote in quotes])


@quotes_bp.route('', methods=['POST'])
@login_required
def create_quote():
    customer, items = validate_quote_payload(json_body())

    quote = Quote(
        quote_date=today_local(),
        isv_rate=current_app.config.get('ISV_RATE', DEFAULT_ISV_RATE),
        created_by=current_user.username,
        **customer
    )
    for position, item in enumerate(items):
        quote.items.append(QuoteItem(position=position, **item))

    db.session.add(quote)
    db.session.commit()

    logger.info(f"Quote {quote.id} created for '{quote.customer_name}' ({len(items)} item(s))")
    return jsonify({'message': 'Quote created', 'quote': quote.to_dict()}), 201


@quotes_bp.route('/<int:quote_id>', methods=['GET'])
@login_required
def get_quote(quote_id):
    quote = db.get_or_404(Quote, quote_id)
    return jsonify(quote.to_dict())


@quotes_bp.route('/<int:quote_id>', methods=['DELETE'])
@login_required
def delete_quote(quote_id):
    quote = db.get_or_404(Quote, quote_id)
    db.session.delete(quote)
    db.session.commit()
    logger.info(f"Quote {quote_id} deleted")
    return jsonify({'message': 'Quote deleted successfully'})


@quotes_bp.route('/<int:quote_id>/pdf', methods=['GET'])
@login_required
def download_quote(quote_id):
    """Render the quote as the PDF handed to the customer"""
    quote = db.get_or_404(Quote, quote_id)
    try:
        pdf = generate_quote_pdf(quote)
    except Exception as e:
        logger.error(f"Error generating quote {quote_id} PDF: {str(e)}")
        return jsonify({'error': 'Failed to generate quote PDF'}), 500
    return pdf_response(pdf, quote_filename(quote.customer_name, quote.quote_date))
