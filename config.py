import os


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'your_secret_key_here'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///storefront.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BABEL_DEFAULT_LOCALE = 'en'
    LANGUAGES = ['en']
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # seconds a transient message stays visible
    MESSAGE_TTL_SECONDS = float(os.environ.get('MESSAGE_TTL_SECONDS') or 3)

    POSTAL_LOOKUP_URL = os.environ.get('POSTAL_LOOKUP_URL') or 'https://viacep.com.br/ws/{code}/json/'
    POSTAL_LOOKUP_TIMEOUT = float(os.environ.get('POSTAL_LOOKUP_TIMEOUT') or 10)

    # max number of browser sessions whose screens are kept in memory
    SCREEN_REGISTRY_SIZE = int(os.environ.get('SCREEN_REGISTRY_SIZE') or 500)
    STREAM_KEEPALIVE_SECONDS = float(os.environ.get('STREAM_KEEPALIVE_SECONDS') or 15)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    POSTAL_LOOKUP_URL = 'http://postal.test/ws/{code}/json/'
