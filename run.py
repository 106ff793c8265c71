"""
Loyalty service entry point.

    python run.py                      # development server
    gunicorn -c gunicorn.conf.py run:app
"""
import os
import sys

from loyalty import create_app

config_name = os.getenv('FLASK_ENV', 'production')

try:
    app = create_app(config_name)
except RuntimeError as e:
    # validate_config refuses unsafe production settings
    print(f"[Loyalty] Refusing to start ({config_name}): {e}", file=sys.stderr)
    sys.exit(1)

if __name__ == '__main__':
    app.run(
        host=os.getenv('HOST', '127.0.0.1'),
        port=int(os.getenv('PORT', 5000)),
        debug=config_name == 'development'
    )
