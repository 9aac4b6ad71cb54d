"""
restogate.db

Credential store adapter (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories for principals
  and tenant lifecycle records.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The auth core only talks to repositories, so the backend can change without
# touching token or gate logic.
