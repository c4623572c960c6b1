from flask import Flask
from flask_migrate import Migrate
from flask_login import LoginManager
from app.extensions import db
from app.config import Config
import logging
import os

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('app.log', encoding='utf-8'),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)

migrate = Migrate()
login_manager = LoginManager()
login_manager.login_view = 'auth.login'
login_manager.login_message = 'Vui lòng đăng nhập để tiếp tục.'


def create_app(config_class=Config):
    static_dir = os.path.abspath(
        os.path.join(
            os.path.dirname(__file__),
            "..",
            "static"))
    # Static files are served from the site root (/images/..., /js/...).
    app = Flask(
        __name__,
        static_folder=static_dir,
        static_url_path="",
    )
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Setup user loader
    from app.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Register blueprints
    from app.blueprints import (
        account,
        admin,
        auth,
        cart,
        orders,
        products,
        public,
    )

    app.register_blueprint(public.bp, url_prefix='/')
    app.register_blueprint(auth.bp, url_prefix='/')
    app.register_blueprint(products.bp, url_prefix='/')
    app.register_blueprint(cart.bp, url_prefix='/')
    app.register_blueprint(orders.bp, url_prefix='/')
    app.register_blueprint(account.bp, url_prefix='/')
    app.register_blueprint(admin.bp, url_prefix='/')

    from app.errors import register_error_handlers
    register_error_handlers(app)

    # Hero banner images are picked once per process.
    from app.services.image_service import find_hero_images
    hero_images = find_hero_images(
        app.static_folder, app.config['HERO_FALLBACK_IMAGES'])

    from app.services.cart_service import cart_count
    from app.services.mail_service import format_vnd
    from app.services.order_service import categories
    from app.utils import get_session_cart

    app.jinja_env.filters['vnd'] = format_vnd

    @app.context_processor
    def inject_layout_data():
        try:
            cats = categories()
        except Exception:
            logger.exception("Could not load categories")
            cats = []
        return {
            'hero_images': hero_images,
            'categories': cats,
            'cart_count': cart_count(get_session_cart()),
            'stripe_publishable': app.config.get('STRIPE_PUBLISHABLE_KEY'),
        }

    # Note: Database tables are managed via Flask-Migrate
    # Use 'flask db upgrade' to create/update tables

    logger.info("Flask application initialized")
    return app
