from core.imports import jsonify, logging, Flask
from core.config import Config
from core.errors import ClientError
from core.extensions import jwt, swagger, cors, gateway
from routes.auth import auth_bp
from routes.buyers import buyers_bp
from routes.marketplace import marketplace_bp
from routes.cart import cart_bp
from routes.orders import order_bp
from routes.buyerOrders import buyer_orders
from routes.vendor import vendor_bp


def create_app(config=Config):
    app = Flask(__name__)
    app.config.from_object(config)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    jwt.init_app(app)
    swagger.init_app(app)
    cors.init_app(app)
    gateway.init_app(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(buyers_bp)
    app.register_blueprint(marketplace_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(order_bp)
    app.register_blueprint(buyer_orders)
    app.register_blueprint(vendor_bp)

    @app.errorhandler(ClientError)
    def handle_client_error(e):
        app.logger.info("%s: %s", type(e).__name__, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.route('/ping')
    def ping():
        return "Ping received", 200

    return app


app = create_app()


if __name__ == "__main__":
    app.run(debug=True)
