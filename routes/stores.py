from flask import Blueprint, current_app, flash, jsonify, redirect, render_template, request, url_for
from flask_babel import gettext as _

from forms.store_forms import StoreForm
from services.screens import current_screen, drop_screen
from services.store_registration import StoreRegistrationController

stores_bp = Blueprint('stores', __name__)

REGISTRATION_SCREEN = 'store_registration'


def registration_screen():
    lookup_client = current_app.extensions['postal_lookup']
    return current_screen(REGISTRATION_SCREEN, lambda: StoreRegistrationController(lookup_client))


@stores_bp.route('/cadastroloja', methods=['GET', 'POST'])
def register_store():
    controller = registration_screen()
    if request.method == 'POST':
        form = StoreForm()
        if form.validate_on_submit():
            postal_code = form.postal_code.data or ''
            postal_code_changed = postal_code != controller.postal_code
            controller.update_field('store_name', form.store_name.data)
            controller.update_field('postal_code', postal_code)
            # a CEP the blur handler never saw is looked up before registering
            resolved = True
            if postal_code_changed:
                resolved = controller.postal_code_blurred()
            if resolved:
                confirmation = controller.submit()
                if confirmation:
                    flash(confirmation, 'success')
                    # lookups still running for this form are ignored from now on
                    drop_screen(REGISTRATION_SCREEN)
        else:
            flash(_('Invalid form data'), 'danger')
        return redirect(url_for('stores.register_store'))

    form = StoreForm(data={'store_name': controller.store_name, 'postal_code': controller.postal_code})
    return render_template('stores/register.html',
                           title=_('Store registration'),
                           form=form,
                           street=controller.street,
                           city=controller.city,
                           region=controller.region,
                           error=controller.error)


@stores_bp.route('/cadastroloja/lookup', methods=['POST'])
def lookup_postal_code():
    """Blur handler of the CEP field."""
    controller = registration_screen()
    data = request.get_json(silent=True) or {}
    controller.update_field('postal_code', str(data.get('postal_code') or ''))
    found = controller.postal_code_blurred()
    return jsonify({
        'success': found,
        'street': controller.street,
        'city': controller.city,
        'region': controller.region,
        'error': controller.error,
    })
