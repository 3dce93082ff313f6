import logging
from flask import Blueprint, flash, redirect, render_template, request, url_for

from config.categories import CATEGORIES, TOP_CATEGORIES
from models import db
from models.listing import Listing
from services.cart_service import parse_price
from utils.auth_utils import login_required
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

listings_bp = Blueprint('listings', __name__)


def filter_listings(category=None, q=None):
    """Listings newest first, optionally narrowed by category and title text"""
    query = Listing.query
    if category and category != 'All':
        query = query.filter(Listing.category == category)
    if q:
        query = query.filter(Listing.title.ilike(f'%{q}%'))
    return query.order_by(Listing.created_at.desc(), Listing.id.desc()).all()


@listings_bp.route('/products')
def products():
    """Classifieds catalogue"""
    category = request.args.get('category', '')
    q = request.args.get('q', '').strip()
    return render_template(
        'products.html',
        products=filter_listings(category, q),
        categories=CATEGORIES,
        top_categories=TOP_CATEGORIES,
        selected_category=category,
        search_query=q
    )


@listings_bp.route('/products/add', methods=['GET', 'POST'])
@login_required
def add_listing():
    if request.method == 'GET':
        return render_template('add_listing.html', categories=CATEGORIES, error=None)

    title = request.form.get('title', '').strip()
    category = request.form.get('category', '')
    image_url = request.form.get('imageUrl', '').strip()
    posted_by = request.form.get('postedBy', '').strip()

    try:
        if not all([title, image_url, posted_by]):
            raise ValidationError('All fields are required.')
        if category not in CATEGORIES:
            raise ValidationError('Please select a valid category.')
        price = parse_price(request.form.get('price'))
    except ValidationError as e:
        return render_template('add_listing.html', categories=CATEGORIES, error=e.message), 400

    listing = Listing(
        title=title,
        price=price,
        category=category,
        image_url=image_url,
        posted_by=posted_by
    )
    db.session.add(listing)
    db.session.commit()
    logger.info(f"Listing created: {listing.id} {listing.title}")

    flash('Listing posted.', 'success')
    return redirect(url_for('listings.products'))


@listings_bp.route('/product/<int:listing_id>')
def product_details(listing_id):
    listing = db.session.get(Listing, listing_id)
    if listing is None:
        return render_template('404.html', message='Product not found'), 404
    return render_template(
        'product_details.html',
        product=listing,
        categories=CATEGORIES,
        success=request.args.get('success') == 'true'
    )


@listings_bp.route('/chat/<seller>')
def chat(seller):
    """Buyer-to-seller chat about one listing"""
    product_id = request.args.get('productId', '').strip()
    if not product_id:
        return 'Product ID required', 400

    listing = db.session.get(Listing, int(product_id)) if product_id.isdigit() else None
    if listing is None:
        return render_template('404.html', message='Product not found'), 404

    return render_template(
        'chat.html',
        seller_username=seller,
        product_id=listing.id,
        product_title=listing.title
    )
