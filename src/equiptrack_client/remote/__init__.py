"""
equiptrack_client.remote

REST client package.

Responsibilities:
- Typed wrappers for every EquipTrack server endpoint.
- The httpx transport chain (base URL rewrite, auth, logging).
- Conversion of transport failures into `NetworkResult` values.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services depend on `EquipTrackApi` and `safe_api_call`, never on httpx directly.
