from flask_restx import Namespace, Resource, fields
from flask import request, g
from agrilink.models.user_model import Role
from agrilink.services import delivery_service
from agrilink.utils.util import role_required

delivery_ns = Namespace('delivery', description='Delivery dashboard, assignments and status tracking')

availability_model = delivery_ns.model('Availability', {
    'status': fields.String(required=True, description='available, busy or offline')
})

delivery_status_model = delivery_ns.model('DeliveryStatus', {
    'status': fields.String(required=True, description='picked_up, in_transit or delivered')
})


@delivery_ns.route('/my-deliveries')
class MyDeliveries(Resource):
    @role_required(Role.DELIVERY)
    @delivery_ns.doc('my_deliveries', security='BearerAuth')
    def get(self):
        """Orders assigned to the calling delivery person"""
        deliveries = delivery_service.get_my_deliveries(g.user)
        return {'success': True, 'count': len(deliveries), 'deliveries': deliveries}, 200


@delivery_ns.route('/availability')
class AvailabilityResource(Resource):
    @role_required(Role.DELIVERY)
    @delivery_ns.expect(availability_model)
    @delivery_ns.doc('update_availability', security='BearerAuth')
    def patch(self):
        """Set own availability"""
        data = request.get_json(silent=True) or {}
        status = delivery_service.set_availability(g.user, data.get('status'))
        return {'success': True, 'message': 'Availability status updated successfully', 'status': status.value}, 200


@delivery_ns.route('/delivery/<int:order_id>/status')
class DeliveryStatusResource(Resource):
    @role_required(Role.DELIVERY)
    @delivery_ns.expect(delivery_status_model)
    @delivery_ns.doc('update_delivery_status', security='BearerAuth')
    def patch(self, order_id):
        """Report pickup, transit or delivery of an assigned order"""
        data = request.get_json(silent=True) or {}
        order = delivery_service.update_delivery_status(order_id, data.get('status'), g.user)
        return {'success': True, 'message': 'Delivery status updated successfully', 'status': order.status.value}, 200


@delivery_ns.route('/stats')
class DeliveryStats(Resource):
    @role_required(Role.DELIVERY)
    @delivery_ns.doc('delivery_stats', security='BearerAuth')
    def get(self):
        """Delivery counts and earnings for the caller"""
        return {'success': True, 'stats': delivery_service.get_delivery_stats(g.user)}, 200


@delivery_ns.route('/assignment/<int:assignment_id>/accept')
class AcceptAssignment(Resource):
    @role_required(Role.DELIVERY)
    @delivery_ns.doc('accept_assignment', security='BearerAuth')
    def post(self, assignment_id):
        """Accept an assignment"""
        assignment = delivery_service.accept_assignment(assignment_id, g.user)
        return {'success': True, 'message': 'Delivery assignment accepted', 'assignment': assignment.to_dict()}, 200


@delivery_ns.route('/assignment/<int:assignment_id>/reject')
class RejectAssignment(Resource):
    @role_required(Role.DELIVERY)
    @delivery_ns.doc('reject_assignment', security='BearerAuth')
    def post(self, assignment_id):
        """Reject an assignment and return the order for re-assignment"""
        assignment = delivery_service.reject_assignment(assignment_id, g.user)
        return {'success': True, 'message': 'Delivery assignment rejected', 'assignment': assignment.to_dict()}, 200
