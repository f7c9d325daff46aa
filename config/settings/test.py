from .base import *  # noqa: F401


DEBUG = False
ALLOWED_HOSTS = ['*']

STRIPE_SECRET_KEY = 'sk_test_placeholder'
STRIPE_PUBLISHABLE_KEY = 'pk_test_placeholder'

ESCROW_GATEWAY = 'tests.fakes.FakeEscrowGateway'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
