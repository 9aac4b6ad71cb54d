"""
restogate.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for consistent log enrichment.
- Security event emission for authentication and authorization outcomes.
"""

# Package marker.
