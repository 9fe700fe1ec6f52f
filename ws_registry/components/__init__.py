"""
Connection Registry Components.

Organized into domain-specific modules:
- core/       - Constants and categories
- connection/ - Connection record and live-connection set
- transport/  - Transport factory and per-connection handles
- metrics/    - Observability (collector, prometheus)
"""
