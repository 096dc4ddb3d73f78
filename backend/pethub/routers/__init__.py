"""HTTP controllers grouped by feature.

Each module exposes a `router` that `pethub.main` includes. Handlers
are thin: they parse the request, call a service and shape the JSON.
"""

from . import admin, auth, pets, posts, shops, system, tasks, users, vaccinations

__all__ = ["admin", "auth", "pets", "posts", "shops", "system", "tasks", "users", "vaccinations"]
