"""
TeleStack - Telemetry event transformation and multi-consumer delivery

Collected telemetry events are shaped per consumer by declarative actions
(setTag, includeData, excludeData, JMESPath) and delivered to each consumer
in isolation, with host fallback for network consumers.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
