from datetime import datetime
from flask_restx import Namespace, Resource

system_ns = Namespace('system', description='Service status')


@system_ns.route('')
class Root(Resource):
    def get(self):
        """API entry point"""
        return {
            'success': True,
            'message': 'Welcome to Agrilink Ethiopia API',
            'version': '2.0.0',
            'endpoints': {
                'auth': '/api/auth',
                'products': '/api/products',
                'orders': '/api/orders',
                'users': '/api/users',
                'delivery': '/api/delivery',
                'admin': '/api/admin'
            }
        }, 200


@system_ns.route('/health')
class Health(Resource):
    def get(self):
        """Health check"""
        return {
            'success': True,
            'message': 'Agrilink Ethiopia API is running',
            'timestamp': datetime.utcnow().isoformat()
        }, 200
