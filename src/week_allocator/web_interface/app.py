"""
Main Flask application for the week allocator API.
"""

import logging
import os
import sys

from flask import Flask
from flask_cors import CORS

from .scheduler_api import generate_schedule, health_check


def configure_logging(level=logging.INFO):
    """Stream package logs to stdout; safe to call more than once."""
    package_logger = logging.getLogger('week_allocator')
    package_logger.setLevel(level)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        package_logger.addHandler(handler)
    return package_logger


def create_app() -> Flask:
    app = Flask(__name__)
    CORS(app)

    app.route('/generate-schedule', methods=['POST'])(generate_schedule)
    app.route('/health', methods=['GET'])(health_check)
    return app


app = create_app()


# This is only run when this file is run directly
if __name__ == '__main__':
    configure_logging()
    port = int(os.environ.get('PORT', 8080))

    from waitress import serve
    serve(app, host="0.0.0.0", port=port)
