from flask_restx import Namespace, Resource, fields, reqparse
from flask import request, g
import logging
from agrilink.models.user_model import Role
from agrilink.services import product_service
from agrilink.services.settings_service import get_service_fee_percentage
from agrilink.utils.auth_middleware import farmer_approval_required
from agrilink.utils.util import role_required

product_ns = Namespace('products', description='Operations related to products')

logger = logging.getLogger(__name__)

# Swagger model
product_model = product_ns.model('ProductInput', {
    'title': fields.String(required=True),
    'description': fields.String(),
    'category': fields.String(required=True),
    'basePrice': fields.Float(required=True, description='Farmer price per kg, before service fee'),
    'quantity': fields.Float(required=True, description='Available stock in kg'),
    'location': fields.String(),
    'harvestDate': fields.Date(),
    'organic': fields.Boolean(),
    'certified': fields.Boolean(),
    'available': fields.Boolean(description='Listing visibility (updates only)'),
    'images': fields.List(fields.String, description='Ordered list of image URLs')
})

# Query filters for the public catalog
product_filter_parser = reqparse.RequestParser()
product_filter_parser.add_argument('category', type=str, location='args', help='Product category')
product_filter_parser.add_argument('location', type=str, location='args', help='Product location')
product_filter_parser.add_argument('status', type=str, location='args', default='approved', help='Product status')


@product_ns.route('')
class ProductList(Resource):
    @product_ns.expect(product_filter_parser)
    @product_ns.doc('list_products')
    def get(self):
        """List available products"""
        args = product_filter_parser.parse_args()
        products = product_service.get_all_products(args['category'], args['location'], args['status'])
        logger.debug(f'Retrieved {len(products)} products')
        return {'success': True, 'count': len(products), 'products': products}, 200

    @role_required(Role.FARMER)
    @farmer_approval_required
    @product_ns.expect(product_model)
    @product_ns.doc('create_product', security='BearerAuth')
    def post(self):
        """Create a product listing (pending admin approval)"""
        data = request.get_json(silent=True) or {}
        fee_percentage = get_service_fee_percentage()
        product, prices = product_service.create_product(data, g.user, fee_percentage)
        return {
            'success': True,
            'message': 'Product created successfully and pending approval',
            'productId': product.id,
            'pricing': prices
        }, 201


@product_ns.route('/farmer/my-products')
class FarmerProducts(Resource):
    @role_required(Role.FARMER)
    @product_ns.doc('my_products', security='BearerAuth')
    def get(self):
        """The calling farmer's products, any status"""
        products = product_service.get_farmer_products(g.user.id)
        return {'success': True, 'count': len(products), 'products': products}, 200


@product_ns.route('/<int:product_id>')
class ProductResource(Resource):
    @product_ns.doc('get_product')
    def get(self, product_id):
        """Get a product by ID"""
        product = product_service.get_product_or_404(product_id)
        return {'success': True, 'product': product_service.format_product(product, farmer_contact=True)}, 200

    @role_required(Role.FARMER)
    @farmer_approval_required
    @product_ns.expect(product_model)
    @product_ns.doc('update_product', security='BearerAuth')
    def put(self, product_id):
        """Update one of the caller's products"""
        data = request.get_json(silent=True) or {}
        fee_percentage = get_service_fee_percentage() if data.get('basePrice') else None
        product = product_service.update_product(product_id, data, g.user, fee_percentage)
        return {
            'success': True,
            'message': 'Product updated successfully',
            'product': product_service.format_product(product)
        }, 200

    @role_required(Role.FARMER)
    @farmer_approval_required
    @product_ns.doc('delete_product', security='BearerAuth')
    def delete(self, product_id):
        """Delete one of the caller's products"""
        product_service.delete_product(product_id, g.user)
        return {'success': True, 'message': 'Product deleted successfully'}, 200
