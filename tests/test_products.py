import unittest
from agrilink import db
from agrilink.models import Product, ProductStatus
from agrilink.services.product_service import calculate_prices_with_fee
from agrilink.services.settings_service import get_service_fee_percentage, seed_default_settings, update_setting
from tests.support import AgrilinkTestCase


class PricingTestCase(unittest.TestCase):
    def test_fee_is_added_on_top_of_base_price(self):
        prices = calculate_prices_with_fee(100, 10)
        self.assertEqual(prices, {
            'base_price': 100.0,
            'service_fee': 10.0,
            'display_price': 110.0,
            'service_fee_percentage': 10.0
        })

    def test_zero_fee(self):
        prices = calculate_prices_with_fee(42.5, 0)
        self.assertEqual(prices['display_price'], 42.5)
        self.assertEqual(prices['service_fee'], 0.0)

    def test_rounds_to_cents(self):
        self.assertEqual(calculate_prices_with_fee(33.33, 5)['display_price'], 35.0)


class SettingsTestCase(AgrilinkTestCase):
    def test_default_fee_comes_from_config(self):
        self.assertEqual(get_service_fee_percentage(), 10.0)

    def test_seed_is_idempotent(self):
        seed_default_settings()
        seed_default_settings()
        self.assertEqual(get_service_fee_percentage(), 10.0)

    def test_stored_fee_overrides_default(self):
        update_setting('service_fee_percentage', 12.5)
        self.assertEqual(get_service_fee_percentage(), 12.5)


class ProductCatalogTestCase(AgrilinkTestCase):
    def setUp(self):
        super().setUp()
        self.farmer = self.make_user('farmer', location='Hawassa')
        self.admin = self.make_user('admin')

    def create(self, **overrides):
        payload = {'title': 'Red Onion', 'category': 'vegetables', 'basePrice': 100, 'quantity': 40,
                   'images': ['https://cdn.agrilink.test/onion-1.jpg', 'https://cdn.agrilink.test/onion-2.jpg']}
        payload.update(overrides)
        return self.client.post('/api/products', json=payload, headers=self.headers(self.farmer))

    def test_create_snapshots_current_fee(self):
        resp = self.create(harvestDate='2026-01-15')
        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertEqual(body['pricing']['display_price'], 110.0)
        product = db.session.get(Product, body['productId'])
        self.assertEqual(product.status, ProductStatus.PENDING)
        self.assertEqual(product.service_fee_percentage, 10.0)
        self.assertEqual(product.location, 'Hawassa')
        self.assertEqual(product.harvest_date.isoformat(), '2026-01-15')
        self.assertEqual(product.images[1], 'https://cdn.agrilink.test/onion-2.jpg')

    def test_fee_change_leaves_existing_prices_alone(self):
        first = self.create().get_json()['productId']
        resp = self.client.patch('/api/admin/settings/service_fee_percentage', json={'value': 20},
                                 headers=self.headers(self.admin))
        self.assertEqual(resp.status_code, 200)

        second = self.create(title='Garlic').get_json()['productId']
        self.assertEqual(db.session.get(Product, first).display_price, 110.0)
        self.assertEqual(db.session.get(Product, second).display_price, 120.0)

        # repricing picks up the new rate
        resp = self.client.put(f'/api/products/{first}', json={'basePrice': 100},
                               headers=self.headers(self.farmer))
        self.assertEqual(resp.status_code, 200)
        product = db.session.get(Product, first)
        self.assertEqual(product.service_fee_percentage, 20.0)
        self.assertEqual(product.display_price, 120.0)

    def test_create_requires_fields_and_numbers(self):
        self.assertEqual(self.create(title='').status_code, 400)
        self.assertEqual(self.create(basePrice='cheap').status_code, 400)
        self.assertEqual(self.create(quantity=-3).status_code, 400)
        self.assertEqual(self.create(images='one.jpg').status_code, 400)
        self.assertEqual(self.create(harvestDate='last tuesday').status_code, 400)

    def test_only_approved_farmers_create(self):
        pending = self.make_user('farmer', approved=False)
        resp = self.client.post('/api/products', json={'title': 'x', 'category': 'y', 'basePrice': 1, 'quantity': 1},
                                headers=self.headers(pending))
        self.assertEqual(resp.status_code, 403)
        buyer = self.make_user('buyer')
        resp = self.client.post('/api/products', json={'title': 'x', 'category': 'y', 'basePrice': 1, 'quantity': 1},
                                headers=self.headers(buyer))
        self.assertEqual(resp.status_code, 403)

    def test_catalog_lists_only_approved_available_products(self):
        visible = self.make_product(self.farmer, title='Teff', category='grains')
        self.make_product(self.farmer, title='Barley', status=ProductStatus.PENDING)
        self.make_product(self.farmer, title='Hidden', available=False)
        self.make_product(self.farmer, title='Coffee', category='coffee')

        resp = self.client.get('/api/products')
        titles = {p['title'] for p in resp.get_json()['products']}
        self.assertEqual(titles, {'Teff', 'Coffee'})

        grains = self.client.get('/api/products?category=grains').get_json()['products']
        self.assertEqual([p['id'] for p in grains], [visible.id])
        self.assertEqual(grains[0]['farmer']['rating'], 4.5)
        self.assertNotIn('email', grains[0]['farmer'])

        self.assertEqual(self.client.get('/api/products?location=Gondar').get_json()['count'], 0)
        self.assertEqual(self.client.get('/api/products?status=bogus').status_code, 400)

    def test_get_product_includes_farmer_contact(self):
        product = self.make_product(self.farmer)
        resp = self.client.get(f'/api/products/{product.id}')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()['product']['farmer']['email'], self.farmer.email)
        self.assertEqual(self.client.get('/api/products/9999').status_code, 404)

    def test_farmer_cannot_touch_someone_elses_product(self):
        other = self.make_user('farmer')
        product = self.make_product(other)
        headers = self.headers(self.farmer)
        self.assertEqual(self.client.put(f'/api/products/{product.id}', json={'title': 'Mine now'},
                                         headers=headers).status_code, 403)
        self.assertEqual(self.client.delete(f'/api/products/{product.id}', headers=headers).status_code, 403)
        self.assertEqual(self.client.put('/api/products/9999', json={'title': 'x'}, headers=headers).status_code, 404)

    def test_update_and_delete_own_product(self):
        product = self.make_product(self.farmer)
        headers = self.headers(self.farmer)
        self.assertEqual(self.client.put(f'/api/products/{product.id}', json={}, headers=headers).status_code, 400)

        resp = self.client.put(f'/api/products/{product.id}', json={'quantity': 12, 'available': False},
                               headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()['product']['quantity'], 12.0)
        self.assertFalse(resp.get_json()['product']['available'])

        mine = self.client.get('/api/products/farmer/my-products', headers=headers).get_json()
        self.assertEqual(mine['count'], 1)

        self.assertEqual(self.client.delete(f'/api/products/{product.id}', headers=headers).status_code, 200)
        self.assertIsNone(db.session.get(Product, product.id))


if __name__ == '__main__':
    unittest.main()
