"""Product management screen.

`ProductListView` keeps the live product and brand snapshots while the
screen is active, `ProductFormController` owns the draft being typed and
turns it into writes on the ``products`` collection. Writes are never
applied locally: the list only changes when the next snapshot arrives.
"""

import logging
import math
import re
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from flask_babel import gettext as _

from errors import RemoteReadError, RemoteWriteError, ValidationError
from models.brand import Brand
from models.product import Product
from services.messages import TransientMessage
from services.store import DESCENDING, SERVER_TIMESTAMP

logger = logging.getLogger(__name__)

PRODUCTS = 'products'
BRANDS = 'brands'
DRAFT_FIELDS = ('name', 'brand', 'price', 'unit')
PRICE_RE = re.compile(r'[0-9]+([.,][0-9]+)?')


class FormState:
    CREATING = 'creating'
    EDITING = 'editing'
    SUBMITTING = 'submitting'


@dataclass
class ProductDraft:
    name: str = ''
    brand: str = ''
    price: str = ''
    unit: str = ''
    edit_id: Optional[str] = None

    @property
    def is_editing(self):
        return self.edit_id is not None

    def values(self):
        return {field: getattr(self, field) for field in DRAFT_FIELDS}


def parse_price(text):
    """Parse the price typed by the user into a non-negative Decimal.

    Only plain digits with an optional dot or comma decimal part are accepted,
    and the value must still be finite once stored as a JSON number.
    """
    text = text.strip()
    if PRICE_RE.fullmatch(text) is None:
        raise ValidationError(_('Price must be a number'))
    price = Decimal(text.replace(',', '.'))
    if not math.isfinite(float(price)):
        raise ValidationError(_('Price must be a number'))
    return price


class ProductFormController:
    """Create/edit/delete orchestration for the product form."""

    def __init__(self, products, message, brand_names=None):
        self.products = products
        self.message = message
        self.draft = ProductDraft()
        self._brand_names = brand_names
        self._submitting = False
        self._lock = threading.Lock()

    @property
    def state(self):
        if self._submitting:
            return FormState.SUBMITTING
        if self.draft.is_editing:
            return FormState.EDITING
        return FormState.CREATING

    @property
    def can_submit(self):
        return not self._submitting

    def update_field(self, name, value):
        if name in DRAFT_FIELDS:
            setattr(self.draft, name, value if value is not None else '')

    def reset(self):
        self.draft = ProductDraft()

    def begin_edit(self, product):
        self.draft = ProductDraft(
            name=product.name,
            brand=product.brand,
            price=product.price_text(),
            unit=product.unit,
            edit_id=product.id,
        )

    def cancel_edit(self):
        self.reset()

    def _build_payload(self):
        draft = self.draft
        values = {field: (value or '').strip() for field, value in draft.values().items()}
        if not all(values.values()):
            raise ValidationError(_('Fill in all fields'))
        price = parse_price(values['price'])
        if self._brand_names is not None and values['brand'] not in self._brand_names():
            raise ValidationError(_('Select a registered brand'))
        return {
            'name': values['name'],
            'brand': values['brand'],
            'price': float(price),
            'unit': values['unit'],
            'createdAt': SERVER_TIMESTAMP,
        }

    def submit(self):
        """Validate the draft and write it; returns True when the write succeeded."""
        with self._lock:
            if self._submitting:
                return False
            self._submitting = True
        try:
            try:
                payload = self._build_payload()
            except ValidationError as e:
                self.message.error(str(e))
                return False

            draft = self.draft
            try:
                if draft.is_editing:
                    self.products.update(draft.edit_id, payload)
                    text = _('Product updated!')
                else:
                    self.products.create(payload)
                    text = _('Product created!')
            except RemoteWriteError as e:
                logger.warning('Saving product failed: %s', e)
                self.message.error(_('Error saving product'))
                return False

            self.message.success(text)
            self.reset()
            return True
        finally:
            with self._lock:
                self._submitting = False

    def delete(self, product_id, confirm):
        """Delete a product once ``confirm()`` answers yes."""
        if not confirm():
            return False
        try:
            self.products.delete(product_id)
        except RemoteWriteError as e:
            logger.warning('Deleting product %s failed: %s', product_id, e)
            self.message.error(_('Error deleting product'))
            return False
        self.message.success(_('Product deleted!'))
        return True


class ProductListView:
    """Latest product/brand snapshots and the searchable projection over them."""

    def __init__(self, products_query, brands_query, message=None):
        self.products = []
        self.brands = []
        self._products_query = products_query
        self._brands_query = brands_query
        self._message = message
        self._subscriptions = []
        self._active_count = 0
        self._lock = threading.Lock()

    @property
    def is_active(self):
        return self._active_count > 0

    def activate(self):
        with self._lock:
            self._active_count += 1
            if self._active_count > 1:
                return
            try:
                products = self._products_query.subscribe(self._on_products, self._on_error)
                try:
                    brands = self._brands_query.subscribe(self._on_brands, self._on_error)
                except Exception:
                    products.unsubscribe()
                    raise
            except Exception:
                self._active_count -= 1
                raise
            self._subscriptions = [products, brands]

    def deactivate(self):
        with self._lock:
            if self._active_count == 0:
                return
            self._active_count -= 1
            if self._active_count > 0:
                return
            subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.unsubscribe()

    @contextmanager
    def active(self):
        self.activate()
        try:
            yield self
        finally:
            self.deactivate()

    def _on_products(self, snapshot):
        self.products = [Product.from_snapshot(item) for item in snapshot]

    def _on_brands(self, snapshot):
        self.brands = [Brand.from_snapshot(item) for item in snapshot]

    def _on_error(self, error):
        logger.warning('Product screen subscription failed: %s', error)
        if self._message is not None and isinstance(error, RemoteReadError):
            self._message.error(_('Error loading products'))

    def brand_names(self):
        return [brand.name for brand in self.brands]

    def find(self, product_id):
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def filtered(self, search=''):
        if not search:
            return list(self.products)
        return [product for product in self.products if product.matches(search)]


class ProductScreen:
    """Everything one browser session needs for the product screen."""

    def __init__(self, store, message_ttl=3.0, clock=time.monotonic):
        self.message = TransientMessage(message_ttl, clock)
        products = store.collection(PRODUCTS)
        self.list_view = ProductListView(
            products.order_by('createdAt', DESCENDING),
            store.collection(BRANDS),
            self.message,
        )
        self.form = ProductFormController(products, self.message, self.list_view.brand_names)
