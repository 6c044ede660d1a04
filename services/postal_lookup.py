"""Client for the CEP (Brazilian postal code) lookup service."""

import logging
import re
from dataclasses import dataclass

import requests

from errors import NotFoundError, RemoteReadError, ValidationError

logger = logging.getLogger(__name__)

POSTAL_CODE_RE = re.compile(r'[0-9]{8}')


def is_valid_postal_code(code):
    return bool(code) and POSTAL_CODE_RE.fullmatch(code) is not None


@dataclass(frozen=True)
class PostalAddress:
    street: str
    city: str
    region: str


class PostalLookupClient:
    """Resolves an 8-digit postal code to street, city and region.

    Speaks the ViaCEP JSON contract: a found code answers with
    ``logradouro``/``localidade``/``uf``, an unknown one with ``{"erro": true}``.
    """

    def __init__(self, url_template='https://viacep.com.br/ws/{code}/json/', timeout=10, session=None):
        self.url_template = url_template
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(config['POSTAL_LOOKUP_URL'], config['POSTAL_LOOKUP_TIMEOUT'])

    def lookup(self, code):
        """Look up ``code``.

        Raises:
            ValidationError: If the code is not exactly 8 digits.
            NotFoundError: If the service does not know the code.
            RemoteReadError: If the service cannot be reached or answers garbage.
        """
        if not is_valid_postal_code(code):
            raise ValidationError(f'Invalid postal code: {code!r}')

        url = self.url_template.format(code=code)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning('Postal lookup for %s failed: %s', code, e)
            raise RemoteReadError(f'Postal lookup failed: {e}') from e
        except ValueError as e:
            logger.warning('Postal lookup for %s returned invalid JSON', code)
            raise RemoteReadError('Postal lookup returned invalid JSON') from e

        if not isinstance(data, dict):
            raise RemoteReadError('Postal lookup returned an unexpected payload')
        if data.get('erro'):
            raise NotFoundError(f'Postal code {code} not found')

        return PostalAddress(
            street=data.get('logradouro') or '',
            city=data.get('localidade') or '',
            region=data.get('uf') or '',
        )
