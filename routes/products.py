import json

from flask import (Blueprint, Response, current_app, jsonify, redirect, render_template,
                   request, stream_with_context, url_for)
from flask_babel import gettext as _

from errors import RemoteReadError
from forms.product_forms import ConfirmDeleteForm, ProductForm
from models.product import Product
from services import document_store
from services.store import DESCENDING, iter_snapshots
from services.product_screen import DRAFT_FIELDS, PRODUCTS, ProductScreen
from services.screens import current_screen

products_bp = Blueprint('products', __name__, url_prefix='/painel/products')


def product_screen():
    ttl = current_app.config['MESSAGE_TTL_SECONDS']
    return current_screen('products', lambda: ProductScreen(document_store, ttl))


def brand_choices(screen):
    return [('', _('Select'))] + [(name, name) for name in screen.list_view.brand_names()]


@products_bp.route('/', methods=['GET', 'POST'])
def index():
    screen = product_screen()
    search = request.args.get('q', '')
    # subscriptions live exactly as long as this request uses the screen
    with screen.list_view.active():
        if request.method == 'POST':
            form = ProductForm()
            form.brand.choices = brand_choices(screen)
            if form.validate_on_submit():
                for field in DRAFT_FIELDS:
                    screen.form.update_field(field, getattr(form, field).data)
                screen.form.submit()
            else:
                screen.message.error(_('Invalid form data'))
            return redirect(url_for('products.index', q=search or None))

        form = ProductForm(data=screen.form.draft.values())
        form.brand.choices = brand_choices(screen)
        return render_template('products/index.html',
                               title=_('Products'),
                               form=form,
                               products=screen.list_view.filtered(search),
                               search=search,
                               state=screen.form.state,
                               editing=screen.form.draft.is_editing,
                               can_submit=screen.form.can_submit,
                               message=screen.message.current(),
                               message_remaining=screen.message.remaining())


@products_bp.route('/edit/<product_id>', methods=['POST'])
def edit_product(product_id):
    screen = product_screen()
    with screen.list_view.active():
        product = screen.list_view.find(product_id)
        if product is None:
            screen.message.error(_('Product not found'))
        else:
            screen.form.begin_edit(product)
    return redirect(url_for('products.index'))


@products_bp.route('/cancel', methods=['POST'])
def cancel_edit():
    product_screen().form.cancel_edit()
    return redirect(url_for('products.index'))


@products_bp.route('/delete/<product_id>', methods=['GET', 'POST'])
def delete_product(product_id):
    screen = product_screen()
    form = ConfirmDeleteForm()
    with screen.list_view.active():
        if request.method == 'POST':
            if form.validate_on_submit():
                screen.form.delete(product_id, confirm=lambda: bool(form.confirm.data))
            return redirect(url_for('products.index'))
        product = screen.list_view.find(product_id)
        return render_template('products/confirm_delete.html',
                               title=_('Delete product'),
                               form=form,
                               product=product,
                               product_id=product_id)


@products_bp.route('/api/list', methods=['GET'])
def api_list_products():
    search = request.args.get('q', '')
    try:
        snapshot = document_store.collection(PRODUCTS).order_by('createdAt', DESCENDING).get()
    except RemoteReadError:
        return jsonify({'success': False, 'message': _('Error loading products')}), 503
    products = [Product.from_snapshot(item) for item in snapshot]
    if search:
        products = [p for p in products if p.matches(search)]
    return jsonify([{
        'id': p.id,
        'name': p.name,
        'brand': p.brand,
        'price': float(p.price),
        'unit': p.unit,
        'createdAt': p.created_at.isoformat() if p.created_at else None,
    } for p in products])


@products_bp.route('/stream')
def stream_products():
    """Server-sent events carrying every new product snapshot."""
    query = document_store.collection(PRODUCTS).order_by('createdAt', DESCENDING)
    keepalive = current_app.config['STREAM_KEEPALIVE_SECONDS']

    def events():
        snapshots = iter_snapshots(query, keepalive)
        try:
            for snapshot in snapshots:
                if snapshot is None:
                    yield ': keepalive\n\n'
                    continue
                yield f'data: {json.dumps(snapshot)}\n\n'
        except RemoteReadError:
            yield 'event: error\ndata: {}\n\n'
        finally:
            snapshots.close()

    return Response(stream_with_context(events()), mimetype='text/event-stream')
