"""
Storefront: single-vendor top-up shop.
Catalog, orders, UddoktaPay payments, accounts and the admin API.
"""

import logging

from flask import Flask
from flasgger import Swagger

from storefront.config import Config
from storefront.errors import register_error_handlers
from storefront.extensions import BLOCKLIST, db, jwt
from storefront.models import User
from storefront.services.notification_service import NotificationQueue, ResendEmailSender
from storefront.services.payment_gateway import UddoktaPayGateway

logger = logging.getLogger(__name__)

SWAGGER_TEMPLATE = {
    "info": {"title": "Storefront API", "version": "1.0.0"},
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "JWT as: Bearer <token>",
        }
    },
}


def configure_logging(app):
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(config_object=None, payment_gateway=None, email_sender=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    configure_logging(app)

    # Initialize Extensions
    db.init_app(app)
    jwt.init_app(app)

    @jwt.token_in_blocklist_loader
    def check_if_token_in_blocklist(jwt_header, jwt_payload):
        if jwt_payload["jti"] in BLOCKLIST:
            return True
        # a ban revokes every token the user already holds
        user = db.session.get(User, jwt_payload["sub"])
        return user is not None and user.ban_active

    Swagger(app, template=SWAGGER_TEMPLATE)

    # Collaborators are built once here; services look them up on app.extensions.
    app.extensions["payment_gateway"] = payment_gateway or UddoktaPayGateway.from_config(app.config)
    if app.extensions["payment_gateway"] is None:
        logger.warning("UDDOKTAPAY_API_KEY not set; payments are disabled")

    sender = email_sender or ResendEmailSender(
        api_key=app.config["RESEND_API_KEY"],
        from_email=app.config["RESEND_FROM_EMAIL"],
        timeout=app.config["HTTP_TIMEOUT"],
    )
    app.extensions["notifications"] = NotificationQueue(
        sender,
        max_attempts=app.config["NOTIFY_MAX_ATTEMPTS"],
        backoff=app.config["NOTIFY_BACKOFF"],
        workers=app.config["NOTIFY_WORKERS"],
        synchronous=app.config["NOTIFY_SYNC"],
        max_failed=app.config["NOTIFY_FAILED_MAX"],
    )

    register_error_handlers(app)

    # Register Blueprints
    from storefront.routes.auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix="/api/auth")

    from storefront.routes.catalog import catalog_bp
    app.register_blueprint(catalog_bp, url_prefix="/api")

    from storefront.routes.orders import orders_bp
    app.register_blueprint(orders_bp, url_prefix="/api/orders")

    from storefront.routes.payments import payment_pages_bp, payments_bp
    app.register_blueprint(payments_bp, url_prefix="/api/payments")
    app.register_blueprint(payment_pages_bp, url_prefix="/payment")

    from storefront.routes.admin import admin_bp
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    from storefront.routes.user import user_bp
    app.register_blueprint(user_bp, url_prefix="/api/user")

    from storefront.routes.upload import upload_bp
    app.register_blueprint(upload_bp, url_prefix="/api/upload")

    from storefront.cli import register_commands
    register_commands(app)

    @app.route("/health")
    def health():
        try:
            db.session.execute(db.text("SELECT 1"))
            return {"service": "storefront", "status": "healthy"}, 200
        except Exception as e:
            logger.error("Health check failed: %s", e)
            return {"service": "storefront", "status": "unhealthy", "error": str(e)}, 503

    logger.debug("Routes: %s", app.url_map)
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=5000)
