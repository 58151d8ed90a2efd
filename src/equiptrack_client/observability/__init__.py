"""
equiptrack_client.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Daily log files that can be exported for support.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# HTTP request/response logging lives with the interceptors in `remote.interceptors`.
