"""
Core utilities shared across the admin panel.

Configuration, password hashing, CSRF/origin checks and rate limiting live
here so routers and services do not read os.environ or touch FastAPI
internals directly.
"""
