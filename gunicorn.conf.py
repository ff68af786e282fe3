# gunicorn.conf.py
import os
import logging
import sys
import multiprocessing

wsgi_app = "app:app"

accesslog = '-'
errorlog = '-'
loglevel = os.getenv('LOG_LEVEL', 'info')

port = os.getenv('PORT', '8080')
bind = f"0.0.0.0:{port}"

# Highlight sessions (and their loaded-color caches) live in worker memory,
# so each worker keeps its own; a small worker count keeps them warm.
cores = multiprocessing.cpu_count()
workers = int(os.getenv('WEB_CONCURRENCY', min(cores, 2)))
threads = 4
worker_class = "gthread"

def on_starting(server):
    logger = logging.getLogger('gunicorn.error')
    logger.setLevel(logging.INFO)
    logger.addHandler(logging.StreamHandler(sys.stdout))
    logger.info(f"Starting gunicorn with {workers} workers on port {port}")

# Category deletion can issue many batched delete calls
timeout = 120
keepalive = 30
graceful_timeout = 60  # let in-flight deletions finish on restart

proc_name = "verse_highlights"
default_proc_name = "verse_highlights"
