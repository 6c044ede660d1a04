import logging

from flask import Flask, has_request_context, render_template, request
from flask_babel import Babel, gettext as _
from flask_wtf.csrf import CSRFProtect

from config import Config
from errors import RemoteReadError
from models import db
from services import document_store
from services.postal_lookup import PostalLookupClient
from services.screens import ScreenRegistry

logger = logging.getLogger(__name__)

# Initialize extensions
babel = Babel()
csrf = CSRFProtect()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    db.init_app(app)
    csrf.init_app(app)
    document_store.init_app(app)
    app.extensions['screens'] = ScreenRegistry(app.config['SCREEN_REGISTRY_SIZE'])
    app.extensions['postal_lookup'] = PostalLookupClient.from_config(app.config)

    def get_locale():
        if not has_request_context():
            return app.config['BABEL_DEFAULT_LOCALE']
        return request.accept_languages.best_match(app.config['LANGUAGES']) or app.config['BABEL_DEFAULT_LOCALE']
    babel.init_app(app, locale_selector=get_locale)

    # Register Blueprints
    from routes.products import products_bp
    app.register_blueprint(products_bp)
    from routes.brands import brands_bp
    app.register_blueprint(brands_bp)
    from routes.stores import stores_bp
    app.register_blueprint(stores_bp)
    # JSON endpoint called from scripts
    csrf.exempt('routes.brands.api_add_brand')

    # Dashboard route
    @app.route("/")
    def dashboard():
        try:
            products_count = len(document_store.collection('products').get())
            brands_count = len(document_store.collection('brands').get())
        except RemoteReadError as e:
            logger.warning('Dashboard counts unavailable: %s', e)
            products_count = brands_count = None

        return render_template('dashboard.html',
                               title=_('Panel'),
                               products_count=products_count,
                               brands_count=brands_count)

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
