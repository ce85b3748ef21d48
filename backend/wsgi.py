# backend/wsgi.py
from invenpro import create_app

app = create_app()
