"""
restogate.api.routers

HTTP routers: auth sessions, restaurant onboarding/status, superadmin
operations and health checks.
"""

# Package marker.
