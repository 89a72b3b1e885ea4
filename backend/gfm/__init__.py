from flask import Flask, jsonify
from flask_cors import CORS
from .config import Config
from .errors import register_error_handlers
from .extensions import db, jwt, limiter, migrate


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    jwt.init_app(app)
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)
    limiter.init_app(app)
    migrate.init_app(app, db)

    from .models import TokenBlocklist, User
    from .routes import register_routes
    from .seed import seed_admin_command

    register_routes(app)
    register_error_handlers(app)
    app.cli.add_command(seed_admin_command)

    def unauthenticated(message):
        return jsonify({"success": False, "error": "unauthenticated", "message": message}), 401

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        jti = jwt_payload["jti"]
        token = db.session.query(TokenBlocklist.id).filter_by(jti=jti).first()
        return token is not None

    @jwt.user_lookup_loader
    def load_user(jwt_header, jwt_data):
        return User.query.filter_by(username=jwt_data["sub"], is_active=True).first()

    @jwt.user_lookup_error_loader
    def user_lookup_failed(jwt_header, jwt_data):
        return unauthenticated("Invalid user")

    @jwt.unauthorized_loader
    def missing_token(reason):
        return unauthenticated("Missing auth token")

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return unauthenticated("Invalid token")

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return unauthenticated("Token has expired")

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return unauthenticated("Token has been revoked")

    with app.app_context():
        db.create_all()

    return app
