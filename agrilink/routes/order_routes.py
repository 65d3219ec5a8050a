from flask_restx import Namespace, Resource, fields
from flask import request, g
import logging
from agrilink.models.user_model import Role
from agrilink.services import order_service
from agrilink.utils.auth_middleware import token_required
from agrilink.utils.util import role_required

order_ns = Namespace('orders', description='Order operations')

logger = logging.getLogger(__name__)

# Swagger models
order_model = order_ns.model('OrderInput', {
    'productId': fields.Integer(required=True, description='Product ID'),
    'quantity': fields.Float(required=True, description='Quantity in kg'),
    'deliveryAddress': fields.String(description='Street address'),
    'deliveryLocation': fields.String(description='Town or city, used for delivery matching'),
    'specialInstructions': fields.String()
})

status_model = order_ns.model('OrderStatus', {
    'status': fields.String(required=True, description='new, processing, assigned, picked_up, in_transit, delivered or cancelled')
})


@order_ns.route('')
class OrderList(Resource):
    @role_required(Role.BUYER)
    @order_ns.expect(order_model)
    @order_ns.doc('create_order', security='BearerAuth')
    def post(self):
        """Place an order (auto-assigns delivery when enabled)"""
        data = request.get_json(silent=True) or {}
        order = order_service.create_order(data, g.user)
        return {
            'success': True,
            'message': 'Order created successfully',
            'orderId': order.id,
            'totalPrice': order.total_price,
            'status': order.status.value,
            'deliveryPersonId': order.delivery_person_id
        }, 201


@order_ns.route('/my-orders')
class BuyerOrders(Resource):
    @role_required(Role.BUYER)
    @order_ns.doc('my_orders', security='BearerAuth')
    def get(self):
        """The calling buyer's orders"""
        orders = order_service.get_buyer_orders(g.user.id)
        return {'success': True, 'count': len(orders), 'orders': orders}, 200


@order_ns.route('/farmer/orders')
class FarmerOrders(Resource):
    @role_required(Role.FARMER)
    @order_ns.doc('farmer_orders', security='BearerAuth')
    def get(self):
        """Orders placed against the calling farmer's products"""
        orders = order_service.get_farmer_orders(g.user.id)
        return {'success': True, 'count': len(orders), 'orders': orders}, 200


@order_ns.route('/<int:order_id>')
class OrderResource(Resource):
    @token_required
    @order_ns.doc('get_order', security='BearerAuth')
    def get(self, order_id):
        """Get one order (admin or a party to the order)"""
        order = order_service.get_order(order_id, g.user)
        return {'success': True, 'order': order.to_dict()}, 200


@order_ns.route('/<int:order_id>/status')
class OrderStatusResource(Resource):
    @token_required
    @order_ns.expect(status_model)
    @order_ns.doc('update_order_status', security='BearerAuth')
    def patch(self, order_id):
        """Move an order to a new status"""
        data = request.get_json(silent=True) or {}
        order = order_service.update_order_status(order_id, data.get('status'), g.user)
        logger.info(f'Order {order_id} set to {order.status.value} by user {g.user.id} ({g.user.role.value})')
        return {
            'success': True,
            'message': 'Order status updated successfully',
            'order': order.to_dict()
        }, 200


@order_ns.route('/<int:order_id>/cancel')
class CancelOrder(Resource):
    @role_required(Role.BUYER)
    @order_ns.doc('cancel_order', security='BearerAuth')
    def post(self, order_id):
        """Cancel one of the caller's orders while it is new or processing"""
        order_service.cancel_order(order_id, g.user)
        return {'success': True, 'message': 'Order cancelled successfully'}, 200
