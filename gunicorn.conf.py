"""
Gunicorn configuration for production deployment.

Run with: gunicorn -c gunicorn.conf.py main:app
"""
import os
from pathlib import Path

# LOG_DIR and APP_NAME come from .env (via framework.config)
from framework.config import settings

LOG_DIR = Path(settings.LOG_DIR)
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Server
bind = os.environ.get("BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes; sessions are stateless cookies so any worker can serve any request
workers = int(os.environ.get("WEB_CONCURRENCY", "2"))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
max_requests = 1000  # Recycle workers to bound memory growth
max_requests_jitter = 50
timeout = 60  # bcrypt and billing provider calls stay well below this
keepalive = 5

proc_name = (settings.GUNICORN_PROC_NAME or settings.APP_NAME.lower().replace(" ", "-"))[:32]

# Logging
accesslog = str(LOG_DIR / "gunicorn_access.log")
errorlog = str(LOG_DIR / "gunicorn_error.log")
loglevel = "info"
# %(U)s is the path without the query string: widget keys stay out of the access log
access_log_format = '%(h)s %(t)s "%(m)s %(U)s" %(s)s %(b)s "%(a)s" %(D)s'

# Process management
daemon = False  # Managed by systemd
pidfile = str(LOG_DIR / "gunicorn.pid")
umask = 0o007

preload_app = True  # Imports main:app once; a missing production SECRET_KEY aborts the master
worker_tmp_dir = "/dev/shm"
graceful_timeout = 30

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def when_ready(server):
    server.log.info("%s is ready. Listening on %s", settings.APP_NAME, server.address)


def on_exit(server):
    server.log.info("%s is shutting down.", settings.APP_NAME)


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)


def worker_abort(worker):
    worker.log.info("Worker received SIGABRT signal")
