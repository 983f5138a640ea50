# refer to https://docs.gunicorn.org/en/stable/settings.html
# run from this directory: gunicorn "example_app.entry:create_app()"

bind = "0.0.0.0:8000"
# Can be overriden by CLI argument --bind

loglevel = "info"
errorlog = "-"
# Requests are logged by serve_helpers' HTTPLogger, not gunicorn.
accesslog = None

workers = 2
"""
The number of worker processes for handling requests.

A positive integer generally in the 2-4 x $(NUM_CORES) range.
"""

worker_class = "sync"
"""https://docs.gunicorn.org/en/stable/design.html"""

threads = 1
