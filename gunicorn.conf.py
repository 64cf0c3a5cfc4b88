"""
Gunicorn configuration for FounderCircles production deployment.

Usage:
    gunicorn app.main:app -c gunicorn.conf.py

PORT and WEB_CONCURRENCY override the bind port and worker count.
"""

import multiprocessing
import os

bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"

# Job endpoints are CPU-bound and infrequent; a small pool is enough
workers = int(os.getenv("WEB_CONCURRENCY", str(min(multiprocessing.cpu_count() + 1, 4))))

worker_class = "uvicorn.workers.UvicornWorker"

# A full match generation run scores every founder pair inside one request
timeout = int(os.getenv("GUNICORN_TIMEOUT", "300"))
graceful_timeout = 30

keepalive = 5

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
