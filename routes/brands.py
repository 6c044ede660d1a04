from flask import Blueprint, render_template, redirect, url_for, flash, request, jsonify
from flask_babel import gettext as _

from errors import RemoteReadError, RemoteWriteError
from forms.brand_forms import BrandForm
from models.brand import Brand
from services import document_store
from services.product_screen import BRANDS

brands_bp = Blueprint('brands', __name__, url_prefix='/painel/brands')


def brands_collection():
    return document_store.collection(BRANDS)


def load_brands():
    return sorted((Brand.from_snapshot(item) for item in brands_collection().get()),
                  key=lambda b: b.name.lower())


def find_brand(brand_id):
    for brand in load_brands():
        if brand.id == brand_id:
            return brand
    return None


def name_taken(name, exclude_id=None):
    name = name.strip().lower()
    return any(b.name.lower() == name and b.id != exclude_id for b in load_brands())


@brands_bp.route('/')
def list_brands():
    try:
        brands = load_brands()
    except RemoteReadError:
        flash(_('Error loading brands'), 'danger')
        brands = []
    return render_template('brands/list.html', title=_('Brands'), brands=brands)


@brands_bp.route('/add', methods=['GET', 'POST'])
def add_brand():
    form = BrandForm()
    if form.validate_on_submit():
        name = form.name.data.strip()
        try:
            if name_taken(name):
                flash(_('Brand name already in use'), 'danger')
            else:
                brands_collection().create({'name': name})
                flash(_('Brand added successfully'), 'success')
                return redirect(url_for('brands.list_brands'))
        except (RemoteReadError, RemoteWriteError):
            flash(_('Error saving brand'), 'danger')
    return render_template('brands/form.html', title=_('New brand'), form=form)


@brands_bp.route('/edit/<brand_id>', methods=['GET', 'POST'])
def edit_brand(brand_id):
    try:
        brand = find_brand(brand_id)
    except RemoteReadError:
        flash(_('Error loading brands'), 'danger')
        return redirect(url_for('brands.list_brands'))
    if brand is None:
        flash(_('Brand not found'), 'danger')
        return redirect(url_for('brands.list_brands'))

    form = BrandForm(obj=brand)
    if form.validate_on_submit():
        name = form.name.data.strip()
        try:
            if name_taken(name, exclude_id=brand.id):
                flash(_('Brand name already in use'), 'danger')
            else:
                # products keep the name they were saved with
                brands_collection().update(brand.id, {'name': name})
                flash(_('Brand updated successfully'), 'success')
                return redirect(url_for('brands.list_brands'))
        except (RemoteReadError, RemoteWriteError):
            flash(_('Error saving brand'), 'danger')
    return render_template('brands/form.html', title=_('Edit brand'), form=form, edit=True)


@brands_bp.route('/delete/<brand_id>', methods=['POST'])
def delete_brand(brand_id):
    try:
        brands_collection().delete(brand_id)
        flash(_('Brand deleted successfully'), 'success')
    except RemoteWriteError:
        flash(_('Error deleting brand'), 'danger')
    return redirect(url_for('brands.list_brands'))


@brands_bp.route('/api/add', methods=['POST'])
def api_add_brand():
    name = ((request.json or {}).get('name') or '').strip()
    if not name:
        return jsonify({'success': False, 'message': _('Brand name is required')}), 400
    try:
        existing = next((b for b in load_brands() if b.name.lower() == name.lower()), None)
        if existing:
            return jsonify({'success': False, 'message': _('Brand already exists'), 'id': existing.id, 'name': existing.name}), 200
        brand_id = brands_collection().create({'name': name})
    except (RemoteReadError, RemoteWriteError):
        return jsonify({'success': False, 'message': _('Error saving brand')}), 503
    return jsonify({'success': True, 'id': brand_id, 'name': name}), 201


@brands_bp.route('/api/list', methods=['GET'])
def api_list_brands():
    try:
        brands = load_brands()
    except RemoteReadError:
        return jsonify({'success': False, 'message': _('Error loading brands')}), 503
    return jsonify([{'id': b.id, 'name': b.name} for b in brands])
