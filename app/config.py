import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or (
        'dev-secret-key-change-in-production'
    )
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or (
        'sqlite:///data.sqlite'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=1)

    # "production" hides stack traces from loopback requests.
    APP_ENV = os.environ.get('APP_ENV', 'development')
    LAST_ERROR_FILE = os.environ.get('LAST_ERROR_FILE', 'last_error.log')

    # Stripe. Checkout falls back to the mock flow when the key is empty.
    STRIPE_SECRET_KEY = os.environ.get('STRIPE_SECRET_KEY', '')
    STRIPE_PUBLISHABLE_KEY = os.environ.get('STRIPE_PUBLISHABLE_KEY', '')
    STRIPE_CURRENCY = 'usd'
    # Naive fixed conversion: 1000 VND -> 1 USD.
    VND_PER_GATEWAY_UNIT = 1000

    # SMTP (optional). Mail is only sent when host and user are set.
    SMTP_HOST = os.environ.get('SMTP_HOST', '')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', 587))
    SMTP_SECURE = os.environ.get('SMTP_SECURE', 'false').lower() == 'true'
    SMTP_USER = os.environ.get('SMTP_USER', '')
    SMTP_PASS = os.environ.get('SMTP_PASS', '')
    SMTP_FROM = os.environ.get('SMTP_FROM') or SMTP_USER

    # Images
    MIN_IMAGE_BYTES = 1024
    PLACEHOLDER_IMAGES = (
        '/images/placeholder-blue.svg',
        '/images/placeholder-green.svg',
        '/images/placeholder-gray.svg',
    )
    DEFAULT_PRODUCT_IMAGE = '/images/default.svg'
    UPLOAD_SUBDIR = 'images'
    HERO_FALLBACK_IMAGES = (
        '/images/1760790304024-1-NAU-LD9202.jpg',
        '/images/1760811897386-aohodie.png',
        '/images/1760787294482-quan1.jpg',
    )

    # Search window
    SEARCH_CANDIDATE_LIMIT = 500
    SEARCH_RESULT_LIMIT = 100

    # Seed admin account
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@local')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'adminpass')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    STRIPE_SECRET_KEY = ''
    SMTP_HOST = ''
    SMTP_USER = ''
