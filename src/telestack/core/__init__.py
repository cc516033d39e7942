"""
Core pipeline components.

This package contains the event transformation and delivery components:
- Query evaluation, location selection and condition matching
- Action processor
- Per-consumer data filter
- Forwarder and consumer registry
- Host-fallback transport
- Tracing, redaction and metrics
"""
