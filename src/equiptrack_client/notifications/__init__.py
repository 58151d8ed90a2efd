"""
equiptrack_client.notifications

Background approval polling and notification sinks.

Responsibilities:
- Periodically check for new approvals and pending reviews.
- Deliver user-facing notifications through a pluggable `Notifier`.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Deduplication state lives in the `preferences` table so restarts do not re-notify.
