# Gunicorn configuration for the glossary API
#
# Rate-limit counters are kept in process memory, so this application
# runs with a single worker unless RATELIMIT_STORAGE_URI points elsewhere.
import os

workers = int(os.environ.get("WEB_CONCURRENCY", "1"))
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8080")
timeout = int(os.environ.get("GUNICORN_TIMEOUT_SECONDS", "30"))
graceful_timeout = int(os.environ.get("GUNICORN_GRACEFUL_TIMEOUT_SECONDS", "30"))
wsgi_app = "run:app"


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s).", worker.pid)
