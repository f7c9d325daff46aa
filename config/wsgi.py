import os
from django.core.wsgi import get_wsgi_application


# Deployments select settings explicitly; fall back to production ones.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.production')

application = get_wsgi_application()
