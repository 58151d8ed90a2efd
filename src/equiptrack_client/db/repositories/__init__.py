"""
equiptrack_client.db.repositories

Repository package.

Responsibilities:
- Group cache data-access repositories, one per mirrored table plus preferences.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories never commit; the calling service owns the transaction.
