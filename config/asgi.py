import os
from django.core.asgi import get_asgi_application


# Deployments select settings explicitly; fall back to production ones.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.production')

application = get_asgi_application()
