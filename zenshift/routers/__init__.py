"""
FastAPI routers grouped by domain (auth, users, subscription, content, etc.).

Each module exposes an APIRouter that ``zenshift.app.create_app`` mounts
under ``/api``. Services are built once per app and read from
``request.app.state`` so tests can swap collaborators.
"""
