"""End-to-end tests of the screens through the Flask test client."""

import json
from unittest import mock

import pytest

from services.store import SERVER_TIMESTAMP
from services.postal_lookup import PostalAddress, PostalLookupClient
from services.store_registration import StoreRegistrationController


def add_product(store, name, brand='Acme', price=1.0, unit='un'):
    return store.collection('products').create({
        'name': name, 'brand': brand, 'price': price, 'unit': unit, 'createdAt': SERVER_TIMESTAMP,
    })


def product_names(store):
    return [item['name'] for item in store.collection('products').get()]


@pytest.fixture
def acme(store):
    return store.collection('brands').create({'name': 'Acme'})


class TestDashboard:

    def test_counts(self, client, store, acme):
        add_product(store, 'Rice')
        response = client.get('/')
        assert response.status_code == 200
        assert b'Products' in response.data


class TestProductScreen:

    def test_create_product(self, client, store, acme):
        response = client.post('/painel/products/', data={
            'name': 'Rice', 'brand': 'Acme', 'price': '12.50', 'unit': 'kg',
        })
        assert response.status_code == 302

        items = store.collection('products').get()
        assert len(items) == 1
        assert items[0]['price'] == 12.5
        assert items[0]['brand'] == 'Acme'

        page = client.get('/painel/products/').get_data(as_text=True)
        assert 'Product created!' in page
        assert 'R$ 12.50/kg' in page
        assert store.listener_count() == 0

    def test_empty_fields_rejected(self, client, store, acme):
        client.post('/painel/products/', data={'name': 'Rice', 'brand': 'Acme', 'price': '', 'unit': 'kg'})

        assert product_names(store) == []
        page = client.get('/painel/products/').get_data(as_text=True)
        assert 'Fill in all fields' in page
        # draft kept for a retry
        assert 'value="Rice"' in page

    def test_edit_and_cancel(self, client, store, acme):
        product_id = add_product(store, 'Rice', price=12.5, unit='kg')

        client.post(f'/painel/products/edit/{product_id}')
        page = client.get('/painel/products/').get_data(as_text=True)
        assert 'Edit product' in page
        assert 'value="12.5"' in page

        client.post('/painel/products/cancel')
        page = client.get('/painel/products/').get_data(as_text=True)
        assert 'New product' in page
        assert 'value="Rice"' not in page

    def test_edit_then_submit_updates(self, client, store, acme):
        product_id = add_product(store, 'Rice', price=12.5, unit='kg')

        client.post(f'/painel/products/edit/{product_id}')
        client.post('/painel/products/', data={'name': 'Rice 5kg', 'brand': 'Acme', 'price': '40', 'unit': 'un'})

        items = store.collection('products').get()
        assert [(i['id'], i['name'], i['price']) for i in items] == [(product_id, 'Rice 5kg', 40.0)]
        assert 'Product updated!' in client.get('/painel/products/').get_data(as_text=True)

    def test_edit_unknown_product(self, client, store):
        client.post('/painel/products/edit/missing')
        assert 'Product not found' in client.get('/painel/products/').get_data(as_text=True)

    def test_delete_requires_confirmation(self, client, store, acme):
        product_id = add_product(store, 'Bread')

        page = client.get(f'/painel/products/delete/{product_id}')
        assert page.status_code == 200
        assert 'Are you sure?' in page.get_data(as_text=True)

        client.post(f'/painel/products/delete/{product_id}', data={'cancel': 'No'})
        assert product_names(store) == ['Bread']

        client.post(f'/painel/products/delete/{product_id}', data={'confirm': 'Yes'})
        assert product_names(store) == []
        assert 'Product deleted!' in client.get('/painel/products/').get_data(as_text=True)

    def test_search(self, client, store, acme):
        add_product(store, 'Milk 1L')
        add_product(store, 'Bread')

        page = client.get('/painel/products/?q=MILK').get_data(as_text=True)
        assert 'Milk 1L' in page
        assert 'Bread' not in page

    def test_overflowing_price_rejected(self, client, store, acme):
        client.post('/painel/products/', data={'name': 'Rice', 'brand': 'Acme', 'price': '1e400', 'unit': 'kg'})

        assert product_names(store) == []
        assert 'Price must be a number' in client.get('/painel/products/').get_data(as_text=True)
        assert client.get('/painel/products/api/list').status_code == 200

    def test_api_list_newest_first(self, client, store, acme):
        add_product(store, 'Bread')
        add_product(store, 'Milk 1L')

        data = client.get('/painel/products/api/list').get_json()
        assert [p['name'] for p in data] == ['Milk 1L', 'Bread']

        data = client.get('/painel/products/api/list?q=bread').get_json()
        assert [p['name'] for p in data] == ['Bread']


class TestBrandScreen:

    def test_add_and_list(self, client, store):
        response = client.post('/painel/brands/add', data={'name': 'Acme'})
        assert response.status_code == 302

        page = client.get('/painel/brands/').get_data(as_text=True)
        assert 'Acme' in page
        assert client.get('/painel/brands/api/list').get_json()[0]['name'] == 'Acme'

    def test_duplicate_rejected(self, client, store, acme):
        response = client.post('/painel/brands/add', data={'name': 'acme'})
        assert response.status_code == 200
        assert 'Brand name already in use' in response.get_data(as_text=True)
        assert len(store.collection('brands').get()) == 1

    def test_rename_keeps_product_brand(self, client, store, acme):
        add_product(store, 'Rice', brand='Acme')

        client.post(f'/painel/brands/edit/{acme}', data={'name': 'Acme Foods'})

        assert store.collection('brands').get()[0]['name'] == 'Acme Foods'
        assert store.collection('products').get()[0]['brand'] == 'Acme'

    def test_delete(self, client, store, acme):
        client.post(f'/painel/brands/delete/{acme}')
        assert store.collection('brands').get() == []

    def test_api_add(self, client, store):
        response = client.post('/painel/brands/api/add', json={'name': 'Camil'})
        assert response.status_code == 201
        again = client.post('/painel/brands/api/add', json={'name': 'Camil'})
        assert again.get_json()['success'] is False
        assert client.post('/painel/brands/api/add', json={}).status_code == 400


class TestStoreRegistration:

    def test_lookup_endpoint(self, client):
        address = PostalAddress(street='Praça da Sé', city='São Paulo', region='SP')
        with mock.patch.object(PostalLookupClient, 'lookup', return_value=address) as lookup:
            data = client.post('/cadastroloja/lookup', json={'postal_code': '01001000'}).get_json()

        lookup.assert_called_once_with('01001000')
        assert data['success'] is True
        assert data['city'] == 'São Paulo'

    def test_short_code_never_looks_up(self, client):
        with mock.patch.object(PostalLookupClient, 'lookup') as lookup:
            data = client.post('/cadastroloja/lookup', json={'postal_code': '1234567'}).get_json()

        lookup.assert_not_called()
        assert data['success'] is False
        assert data['error'] == 'CEP must contain 8 numeric digits.'

    def test_register_flow(self, client):
        address = PostalAddress(street='Praça da Sé', city='São Paulo', region='SP')
        with mock.patch.object(PostalLookupClient, 'lookup', return_value=address):
            client.post('/cadastroloja/lookup', json={'postal_code': '01001000'})
            page = client.get('/cadastroloja').get_data(as_text=True)
            assert 'value="Praça da Sé"' in page

            response = client.post('/cadastroloja', data={
                'store_name': 'Mercadinho', 'postal_code': '01001000', 'submit': 'y',
            }, follow_redirects=True)

        page = response.get_data(as_text=True)
        assert 'Store registered successfully!' in page
        assert 'Mercadinho' in page
        # the form starts over
        assert 'value="Praça da Sé"' not in page

    def test_register_looks_up_unseen_code(self, client):
        address = PostalAddress(street='Praça da Sé', city='São Paulo', region='SP')
        with mock.patch.object(PostalLookupClient, 'lookup', return_value=address) as lookup:
            response = client.post('/cadastroloja', data={
                'store_name': 'Mercadinho', 'postal_code': '01001000', 'submit': 'y',
            }, follow_redirects=True)

        lookup.assert_called_once_with('01001000')
        assert 'Store registered successfully!' in response.get_data(as_text=True)

    def test_registration_discards_finished_form(self, client):
        address = PostalAddress(street='Praça da Sé', city='São Paulo', region='SP')
        with mock.patch.object(PostalLookupClient, 'lookup', return_value=address), \
                mock.patch.object(StoreRegistrationController, 'discard', autospec=True) as discard:
            client.post('/cadastroloja/lookup', json={'postal_code': '01001000'})
            discard.assert_not_called()

            client.post('/cadastroloja', data={'store_name': 'Mercadinho', 'postal_code': '01001000'})

        discard.assert_called_once()

    def test_failed_registration_keeps_form(self, client):
        with mock.patch.object(StoreRegistrationController, 'discard', autospec=True) as discard:
            client.post('/cadastroloja', data={'store_name': 'Mercadinho', 'postal_code': '123'})
            page = client.get('/cadastroloja').get_data(as_text=True)

        discard.assert_not_called()
        assert 'CEP must contain 8 numeric digits.' in page
        assert 'value="Mercadinho"' in page

    def test_page_looks_up_on_blur(self, client):
        page = client.get('/cadastroloja').get_data(as_text=True)
        assert "addEventListener('blur'" in page
        assert '/cadastroloja/lookup' in page
        assert 'Look up CEP' not in page

    def test_sessions_share_one_lookup_client(self, app):
        with mock.patch('routes.stores.StoreRegistrationController', wraps=StoreRegistrationController) as factory:
            app.test_client().get('/cadastroloja')
            app.test_client().get('/cadastroloja')

        assert factory.call_count == 2
        assert all(call.args[0] is app.extensions['postal_lookup'] for call in factory.call_args_list)


class TestProductStream:

    def test_first_event_is_current_snapshot(self, client, store, acme):
        add_product(store, 'Rice')

        response = client.get('/painel/products/stream')
        assert response.mimetype == 'text/event-stream'
        first = next(iter(response.response))
        assert store.listener_count() == 1

        response.close()
        assert store.listener_count() == 0

        assert first.startswith(b'data: ')
        snapshot = json.loads(first[len(b'data: '):])
        assert [item['name'] for item in snapshot] == ['Rice']

    def test_page_subscribes_to_stream(self, client, store):
        page = client.get('/painel/products/').get_data(as_text=True)
        assert 'new EventSource("/painel/products/stream")' in page


class TestLocale:

    def test_portuguese_browser_gets_english_pages(self, client):
        page = client.get('/', headers={'Accept-Language': 'pt-BR,pt;q=0.9'}).get_data(as_text=True)
        assert '<html lang="en">' in page
        assert 'Products' in page
