"""
restogate.services

Service layer (transaction owners).

Responsibilities:
- Login/logout/refresh and password rotation (`auth_service`).
- Owner registration, superadmin creation and tenant lifecycle changes
  (`account_service`).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers stay thin: parse the request, call one service method, shape the reply.
