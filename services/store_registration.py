import logging

from flask_babel import gettext as _

from errors import NotFoundError, RemoteReadError
from services.postal_lookup import is_valid_postal_code

logger = logging.getLogger(__name__)

INPUT_FIELDS = ('store_name', 'postal_code')
DERIVED_FIELDS = ('street', 'city', 'region')


class StoreRegistrationController:
    """Form state of the store registration screen.

    Street, city and region are read-only: only a postal code lookup fills
    them. Registering a store only produces a local confirmation.
    """

    def __init__(self, lookup_client):
        self.lookup_client = lookup_client
        self.discarded = False
        self.confirmation = ''
        self._reset()

    def _reset(self):
        self.store_name = ''
        self.postal_code = ''
        self.error = ''
        self._clear_address()

    def _clear_address(self):
        self.street = ''
        self.city = ''
        self.region = ''

    def values(self):
        return {field: getattr(self, field) for field in INPUT_FIELDS + DERIVED_FIELDS}

    def update_field(self, name, value):
        if name in INPUT_FIELDS:
            setattr(self, name, value if value is not None else '')

    def discard(self):
        self.discarded = True

    def postal_code_blurred(self):
        """Validate the postal code and resolve it into an address."""
        code = self.postal_code
        if not is_valid_postal_code(code):
            self.error = _('CEP must contain 8 numeric digits.')
            self._clear_address()
            return False

        try:
            address = self.lookup_client.lookup(code)
        except NotFoundError:
            if not self.discarded:
                self.error = _('CEP not found.')
                self._clear_address()
            return False
        except RemoteReadError:
            if not self.discarded:
                self.error = _('Error looking up CEP.')
                self._clear_address()
            return False

        if self.discarded:
            logger.debug('Dropping lookup result for discarded registration form')
            return False
        # the field may have been edited while the lookup was running
        if code != self.postal_code:
            return False
        self.street = address.street
        self.city = address.city
        self.region = address.region
        self.error = ''
        return True

    def submit(self):
        """Confirm the registration; returns the confirmation text or None."""
        values = self.values()
        if not all(value.strip() for value in values.values()):
            self.error = _('Please fill in all fields correctly.')
            return None

        self.confirmation = _(
            'Store registered successfully!\n\n'
            'Name: %(store_name)s\n'
            'Address: %(street)s, %(city)s - %(region)s\n'
            'CEP: %(postal_code)s',
            **values
        )
        logger.info('Store %r registered locally (CEP %s)', self.store_name, self.postal_code)
        self._reset()
        return self.confirmation
