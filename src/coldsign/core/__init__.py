"""
coldsign Core Module

Shared building blocks for the air-gap protocol stack:
- Typed error hierarchy
- Byte and hex helpers
- Environment configuration and structured logging
- Transaction plan model consumed by the QR codec
"""

__all__ = []
