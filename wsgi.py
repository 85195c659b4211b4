# wsgi.py
# Entry point for gunicorn / Elastic Beanstalk: `application` is the WSGI app.
from application import create_app

application = create_app()
