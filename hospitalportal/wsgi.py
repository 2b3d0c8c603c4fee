"""
WSGI config for the hospital portal project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hospitalportal.settings')

application = get_wsgi_application()
