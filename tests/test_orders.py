import unittest
from agrilink import db
from agrilink.models import (
    AssignmentStatus, Availability, DeliveryAssignment, Order, OrderStatus, ProductStatus, User
)
from tests.support import AgrilinkTestCase


class OrderCreationTestCase(AgrilinkTestCase):
    def setUp(self):
        super().setUp()
        self.farmer = self.make_user('farmer', location='Adama')
        self.buyer = self.make_user('buyer')
        self.product = self.make_product(self.farmer, base_price=100, fee_percentage=10)

    def test_total_uses_display_price(self):
        resp = self.place_order(self.buyer, self.product, quantity=5, deliveryAddress='Bole Road 12')
        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertEqual(body['totalPrice'], 550.0)
        self.assertEqual(body['status'], 'new')
        self.assertIsNone(body['deliveryPersonId'])

        order = db.session.get(Order, body['orderId'])
        self.assertEqual(order.price_per_kg, 110.0)
        self.assertEqual(order.farmer_id, self.farmer.id)
        self.assertEqual(order.product_name, 'Teff')
        self.assertEqual(order.delivery_address, 'Bole Road 12')

    def test_order_price_is_frozen(self):
        order_id = self.place_order(self.buyer, self.product).get_json()['orderId']
        self.product.display_price = 999.0
        db.session.commit()
        self.assertEqual(db.session.get(Order, order_id).total_price, 550.0)

    def test_unavailable_products_are_not_found(self):
        pending = self.make_product(self.farmer, status=ProductStatus.PENDING)
        hidden = self.make_product(self.farmer, available=False)
        for product in (pending, hidden):
            resp = self.place_order(self.buyer, product)
            self.assertEqual(resp.status_code, 404)
            self.assertEqual(resp.get_json()['message'], 'Product not found or not available')
        resp = self.client.post('/api/orders', json={'productId': 9999, 'quantity': 1},
                                headers=self.headers(self.buyer))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(Order.query.count(), 0)

    def test_quantity_is_validated(self):
        resp = self.client.post('/api/orders', json={'productId': self.product.id},
                                headers=self.headers(self.buyer))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.place_order(self.buyer, self.product, quantity='lots').status_code, 400)
        self.assertEqual(self.place_order(self.buyer, self.product, quantity=-1).status_code, 400)

    def test_only_buyers_order(self):
        self.assertEqual(self.place_order(self.farmer, self.product).status_code, 403)

    def test_listing_orders(self):
        self.place_order(self.buyer, self.product, quantity=1)
        self.place_order(self.buyer, self.product, quantity=2)
        mine = self.client.get('/api/orders/my-orders', headers=self.headers(self.buyer)).get_json()
        self.assertEqual(mine['count'], 2)
        self.assertEqual(mine['orders'][0]['product_title'], 'Teff')
        self.assertEqual(mine['orders'][0]['farmer_name'], self.farmer.name)

        sales = self.client.get('/api/orders/farmer/orders', headers=self.headers(self.farmer)).get_json()
        self.assertEqual(sales['count'], 2)
        self.assertEqual(sales['orders'][0]['buyer_name'], self.buyer.name)

    def test_order_visibility(self):
        order_id = self.place_order(self.buyer, self.product).get_json()['orderId']
        stranger = self.make_user('buyer')
        admin = self.make_user('admin')
        self.assertEqual(self.client.get(f'/api/orders/{order_id}', headers=self.headers(self.buyer)).status_code, 200)
        self.assertEqual(self.client.get(f'/api/orders/{order_id}', headers=self.headers(self.farmer)).status_code, 200)
        self.assertEqual(self.client.get(f'/api/orders/{order_id}', headers=self.headers(admin)).status_code, 200)
        self.assertEqual(self.client.get(f'/api/orders/{order_id}', headers=self.headers(stranger)).status_code, 403)
        self.assertEqual(self.client.get('/api/orders/9999', headers=self.headers(admin)).status_code, 404)


class OrderStatusTestCase(AgrilinkTestCase):
    def setUp(self):
        super().setUp()
        self.farmer = self.make_user('farmer', location='Adama')
        self.buyer = self.make_user('buyer')
        self.admin = self.make_user('admin')
        self.product = self.make_product(self.farmer)
        self.order_id = self.place_order(self.buyer, self.product).get_json()['orderId']

    def set_status(self, user, status, order_id=None):
        return self.client.patch(f'/api/orders/{order_id or self.order_id}/status', json={'status': status},
                                 headers=self.headers(user))

    def order(self):
        return db.session.get(Order, self.order_id)

    def test_farmer_moves_own_order_along(self):
        resp = self.set_status(self.farmer, 'processing')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()['order']['status'], 'processing')

    def test_other_farmer_is_forbidden(self):
        other = self.make_user('farmer')
        self.assertEqual(self.set_status(other, 'processing').status_code, 403)

    def test_unapproved_owner_is_forbidden(self):
        self.farmer.approved = False
        db.session.commit()
        self.assertEqual(self.set_status(self.farmer, 'processing').status_code, 403)

    def test_buyer_may_only_cancel(self):
        self.assertEqual(self.set_status(self.buyer, 'processing').status_code, 403)
        resp = self.set_status(self.buyer, 'cancelled')
        self.assertEqual(resp.status_code, 200)
        self.assertIsNotNone(self.order().cancelled_at)

    def test_unassigned_delivery_person_is_forbidden(self):
        courier = self.make_user('delivery', location='Nowhere')
        self.assertEqual(self.set_status(courier, 'picked_up').status_code, 403)

    def test_invalid_status_value(self):
        resp = self.set_status(self.admin, 'shipped')
        self.assertEqual(resp.status_code, 400)
        self.assertIn('Invalid status', resp.get_json()['message'])
        self.assertEqual(self.set_status(self.admin, 'processing', order_id=9999).status_code, 404)

    def test_graph_is_enforced_for_non_admins(self):
        resp = self.set_status(self.farmer, 'delivered')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.order().status, OrderStatus.NEW)
        self.assertEqual(self.set_status(self.farmer, 'new').status_code, 400)

    def test_assigned_requires_a_delivery_person(self):
        for user in (self.farmer, self.admin):
            resp = self.set_status(user, 'assigned')
            self.assertEqual(resp.status_code, 400)
            self.assertIn('no delivery person', resp.get_json()['message'])
        order = self.order()
        self.assertEqual(order.status, OrderStatus.NEW)
        self.assertIsNone(order.assigned_at)

    def test_admin_may_override_between_open_statuses(self):
        resp = self.set_status(self.admin, 'in_transit')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.order().status, OrderStatus.IN_TRANSIT)

    def test_terminal_orders_never_move(self):
        self.assertEqual(self.set_status(self.admin, 'delivered').status_code, 200)
        self.assertIsNotNone(self.order().delivered_at)
        for user, status in ((self.admin, 'processing'), (self.farmer, 'cancelled'), (self.buyer, 'cancelled')):
            resp = self.set_status(user, status)
            self.assertEqual(resp.status_code, 400, status)
        self.assertEqual(self.order().status, OrderStatus.DELIVERED)


class CancelOrderTestCase(AgrilinkTestCase):
    def setUp(self):
        super().setUp()
        self.farmer = self.make_user('farmer', location='Adama')
        self.buyer = self.make_user('buyer')
        self.product = self.make_product(self.farmer)

    def cancel(self, order_id, user=None):
        return self.client.post(f'/api/orders/{order_id}/cancel', headers=self.headers(user or self.buyer))

    def test_cancel_new_and_processing_orders(self):
        new_id = self.place_order(self.buyer, self.product).get_json()['orderId']
        processing = db.session.get(Order, self.place_order(self.buyer, self.product).get_json()['orderId'])
        processing.status = OrderStatus.PROCESSING
        db.session.commit()

        for order_id in (new_id, processing.id):
            resp = self.cancel(order_id)
            self.assertEqual(resp.status_code, 200)
            order = db.session.get(Order, order_id)
            self.assertEqual(order.status, OrderStatus.CANCELLED)
            self.assertIsNotNone(order.cancelled_at)

    def test_cancel_releases_bound_courier(self):
        courier = self.make_user('delivery', location='Adama')
        order = db.session.get(Order, self.place_order(self.buyer, self.product).get_json()['orderId'])
        self.assertEqual(order.delivery_person_id, courier.id)
        # still cancellable while the farmer is preparing it
        order.status = OrderStatus.PROCESSING
        db.session.commit()

        self.assertEqual(self.cancel(order.id).status_code, 200)
        self.assertEqual(db.session.get(User, courier.id).availability_status, Availability.AVAILABLE)
        assignment = DeliveryAssignment.query.filter_by(order_id=order.id).one()
        self.assertEqual(assignment.status, AssignmentStatus.CANCELLED)

    def test_cannot_cancel_after_dispatch(self):
        order = db.session.get(Order, self.place_order(self.buyer, self.product).get_json()['orderId'])
        order.status = OrderStatus.PICKED_UP
        db.session.commit()
        resp = self.cancel(order.id)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()['message'], 'Order cannot be cancelled in current status')

    def test_cannot_cancel_someone_elses_order(self):
        order_id = self.place_order(self.buyer, self.product).get_json()['orderId']
        other = self.make_user('buyer')
        self.assertEqual(self.cancel(order_id, other).status_code, 404)
        self.assertEqual(self.cancel(9999).status_code, 404)


if __name__ == '__main__':
    unittest.main()
