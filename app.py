#!/usr/bin/env python3
"""
Simple entry point for deployment.
"""

import os
import sys
from pathlib import Path

# Add src to Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

# Import the Flask app
import week_allocator.web_interface.app as web_app
app = web_app.app


# This is only run when this file is run directly
if __name__ == "__main__":
    web_app.configure_logging()
    port = int(os.environ.get('PORT', 8080))

    from waitress import serve
    serve(app, host="0.0.0.0", port=port)
