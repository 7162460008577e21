# backend/wsgi.py
from layup import create_app

app = create_app()
