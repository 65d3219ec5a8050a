from flask_restx import Namespace, Resource, fields, reqparse
from flask import request, g
from agrilink.models.product_model import ProductStatus
from agrilink.models.user_model import Role
from agrilink.services import admin_service, delivery_service, order_service, product_service, settings_service
from agrilink.utils.util import role_required

admin_ns = Namespace('admin', description='Administrative operations (admin role only)')

reject_model = admin_ns.model('RejectProduct', {
    'reason': fields.String(description='Shown to the farmer')
})

setting_model = admin_ns.model('SettingValue', {
    'value': fields.String(required=True)
})

assign_model = admin_ns.model('ManualAssignment', {
    'deliveryPersonId': fields.Integer(required=True),
    'deliveryFee': fields.Float(),
    'notes': fields.String()
})

user_filter_parser = reqparse.RequestParser()
user_filter_parser.add_argument('type', type=str, location='args', help='farmer, buyer, delivery or admin')

status_filter_parser = reqparse.RequestParser()
status_filter_parser.add_argument('status', type=str, location='args')


@admin_ns.route('/users')
class AdminUsers(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.expect(user_filter_parser)
    @admin_ns.doc('admin_users', security='BearerAuth')
    def get(self):
        """All users, optionally filtered by type"""
        users = admin_service.get_users(user_filter_parser.parse_args()['type'])
        return {'success': True, 'count': len(users), 'users': users}, 200


@admin_ns.route('/users/<int:user_id>')
class AdminUser(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('delete_user', security='BearerAuth')
    def delete(self, user_id):
        """Delete a user"""
        admin_service.delete_user(user_id, g.user)
        return {'success': True, 'message': 'User deleted successfully'}, 200


@admin_ns.route('/users/<int:user_id>/approve')
class ApproveFarmer(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('approve_farmer', security='BearerAuth')
    def patch(self, user_id):
        """Approve a farmer account"""
        admin_service.approve_farmer(user_id)
        return {'success': True, 'message': 'Farmer approved successfully'}, 200


@admin_ns.route('/users/<int:user_id>/suspend')
class SuspendUser(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('suspend_user', security='BearerAuth')
    def patch(self, user_id):
        """Suspend a user"""
        admin_service.set_suspended(user_id, True)
        return {'success': True, 'message': 'User suspended successfully'}, 200


@admin_ns.route('/users/<int:user_id>/unsuspend')
class UnsuspendUser(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('unsuspend_user', security='BearerAuth')
    def patch(self, user_id):
        """Lift a suspension"""
        admin_service.set_suspended(user_id, False)
        return {'success': True, 'message': 'User unsuspended successfully'}, 200


@admin_ns.route('/products')
class AdminProducts(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.expect(status_filter_parser)
    @admin_ns.doc('admin_products', security='BearerAuth')
    def get(self):
        """All products including pending ones"""
        products = admin_service.get_products(status_filter_parser.parse_args()['status'])
        return {'success': True, 'count': len(products), 'products': products}, 200


@admin_ns.route('/products/<int:product_id>')
class AdminProduct(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('admin_delete_product', security='BearerAuth')
    def delete(self, product_id):
        """Delete any product"""
        product_service.admin_delete_product(product_id)
        return {'success': True, 'message': 'Product deleted successfully'}, 200


@admin_ns.route('/products/<int:product_id>/approve')
class ApproveProduct(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('approve_product', security='BearerAuth')
    def patch(self, product_id):
        """Approve a listing"""
        product_service.set_product_status(product_id, ProductStatus.APPROVED)
        return {'success': True, 'message': 'Product approved successfully'}, 200


@admin_ns.route('/products/<int:product_id>/reject')
class RejectProduct(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.expect(reject_model)
    @admin_ns.doc('reject_product', security='BearerAuth')
    def patch(self, product_id):
        """Reject a listing with a reason"""
        data = request.get_json(silent=True) or {}
        product_service.set_product_status(product_id, ProductStatus.REJECTED, data.get('reason'))
        return {'success': True, 'message': 'Product rejected'}, 200


@admin_ns.route('/products/<int:product_id>/suspend')
class SuspendProduct(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('suspend_product', security='BearerAuth')
    def patch(self, product_id):
        """Suspend a listing"""
        product_service.set_product_status(product_id, ProductStatus.SUSPENDED)
        return {'success': True, 'message': 'Product suspended successfully'}, 200


@admin_ns.route('/orders')
class AdminOrders(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.expect(status_filter_parser)
    @admin_ns.doc('admin_orders', security='BearerAuth')
    def get(self):
        """All orders"""
        orders = order_service.get_all_orders(status_filter_parser.parse_args()['status'])
        return {'success': True, 'count': len(orders), 'orders': orders}, 200


@admin_ns.route('/orders/<int:order_id>/assign')
class AssignOrder(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.expect(assign_model)
    @admin_ns.doc('assign_order', security='BearerAuth')
    def post(self, order_id):
        """Dispatch a specific delivery person to an order"""
        data = request.get_json(silent=True) or {}
        assignment = delivery_service.manual_assign(order_id, data)
        return {'success': True, 'message': 'Delivery assigned successfully', 'assignment': assignment.to_dict()}, 201


@admin_ns.route('/orders/<int:order_id>/auto-assign')
class AutoAssignOrder(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('auto_assign_order', security='BearerAuth')
    def post(self, order_id):
        """Re-run automatic matching for an unassigned order"""
        order = order_service.get_order_or_404(order_id)
        order_service.check_assignable(order)
        assignment = order_service.try_auto_assign(order)
        if assignment is None:
            return {'success': True, 'assigned': False, 'message': 'No available delivery personnel found'}, 200
        return {
            'success': True,
            'assigned': True,
            'message': 'Delivery assigned successfully',
            'assignment': assignment.to_dict()
        }, 200


@admin_ns.route('/stats')
class AdminStats(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('admin_stats', security='BearerAuth')
    def get(self):
        """Dashboard counts"""
        return {'success': True, 'stats': admin_service.get_dashboard_stats()}, 200


@admin_ns.route('/settings')
class Settings(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.doc('get_settings', security='BearerAuth')
    def get(self):
        """Global settings"""
        return {'success': True, 'settings': settings_service.get_all_settings()}, 200


@admin_ns.route('/settings/<string:key>')
class SettingResource(Resource):
    @role_required(Role.ADMIN)
    @admin_ns.expect(setting_model)
    @admin_ns.doc('update_setting', security='BearerAuth')
    def patch(self, key):
        """Update one setting; existing product prices are left untouched"""
        data = request.get_json(silent=True) or {}
        setting = settings_service.update_setting(key, data.get('value'))
        return {
            'success': True,
            'message': 'Setting updated successfully',
            'setting': {setting.setting_key: setting.setting_value}
        }, 200
