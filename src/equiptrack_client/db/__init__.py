"""
equiptrack_client.db

Local cache package (SQLAlchemy async over SQLite).

Responsibilities:
- Provide ORM tables mirroring server entities, engine/session setup, and repositories.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The cache is a disposable mirror of the server; nothing here is a source of truth.
