# backend/wsgi.py
from seating import create_app

app = create_app()
