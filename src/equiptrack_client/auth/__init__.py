"""
equiptrack_client.auth

Authorization package.

Responsibilities:
- Role to permission matrix and department scoping checks.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Login and session storage live in `services.auth_service` and `services.session`.
