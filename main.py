"""WSGI entrypoint for the Recipe Book application.

The Flask development server is not started from this module so deployments
can run it under Gunicorn. Local development can use ``flask --app main run``,
which imports the ``app`` object defined below.
"""

import logging

from recipebook import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


__all__ = ["app"]
