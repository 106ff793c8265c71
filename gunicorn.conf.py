"""
Gunicorn configuration for the loyalty service.

    gunicorn -c gunicorn.conf.py run:app
"""
import os

bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"

# Card writes are short; sync workers are enough
workers = int(os.getenv('GUNICORN_WORKERS', '2'))
worker_class = 'sync'
timeout = int(os.getenv('GUNICORN_TIMEOUT', '30'))
graceful_timeout = timeout

accesslog = '-'
errorlog = '-'
loglevel = os.getenv('LOG_LEVEL', 'info').lower()

proc_name = 'loyalty'

# Each worker opens its own database pool after the fork
preload_app = False


def post_fork(server, worker):
    server.log.info(f"Loyalty worker {worker.pid} ready")
