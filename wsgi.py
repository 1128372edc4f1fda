# wsgi.py (at repo root), served with e.g. ``gunicorn wsgi:app``
from marketdesk import create_app

app = create_app()
