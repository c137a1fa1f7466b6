"""
FastAPI routers grouped by screen (auth, dashboard, content, navigation, public).

Each module exposes an APIRouter included by cms.admin_app.create_app;
content builds one per collection.
Shared objects (repositories, storage, panel states) are read from
request.app.state.
"""
