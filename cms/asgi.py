"""ASGI entry point: `uvicorn cms.asgi:app`."""
from cms.admin_app import create_app

app = create_app()
