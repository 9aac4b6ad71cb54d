"""
restogate.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories for principals and restaurants.
"""

# Package marker; repositories are imported directly from submodules.
