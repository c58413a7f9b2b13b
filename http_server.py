#!/usr/bin/env python3
"""
TuneBridge HTTP Server Runner
"""

import os

from tunebridge.crosscutting.config import setup_config
from tunebridge.crosscutting.logging import setup_logging
from tunebridge.interfaces.http import HTTPServer


def main():
    """Run the HTTP server."""
    settings = setup_config(os.getenv('TUNEBRIDGE_ENV_FILE') or None)
    setup_logging(settings.log_level)
    server = HTTPServer(
        host=os.getenv('TUNEBRIDGE_HOST', 'localhost'),
        port=int(os.getenv('TUNEBRIDGE_PORT', '3000')),
        debug=os.getenv('TUNEBRIDGE_DEBUG') == '1',
        settings=settings,
    )
    server.run()


if __name__ == '__main__':
    main()
