"""
equiptrack_client.services

Service layer (transaction owners).

Responsibilities:
- Combine server calls with the local cache (sync, fallbacks, local-debug mode).
- Own commit boundaries: one session per operation.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services return `NetworkResult` values; they never raise for expected server failures.
