"""FastAPI routers acting as controllers in the MVC architecture."""

from . import auth, files, users, visualize

__all__ = ["auth", "files", "users", "visualize"]
