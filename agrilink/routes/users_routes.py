# agrilink/routes/users_routes.py
from flask_restx import Namespace, Resource
from agrilink import db
from agrilink.errors import NotFound
from agrilink.models.user_model import User

users_ns = Namespace('users', description='Public user information')


@users_ns.route('/<int:user_id>')
class UserResource(Resource):
    def get(self, user_id):
        """Public profile of a user"""
        user = db.session.get(User, user_id)
        if not user:
            raise NotFound('User not found')
        return {'success': True, 'user': user.to_dict(private=False)}, 200
