"""
Statement Kernel

Shared foundation for the owner statement engine:
- Money value object with explicit half-up rounding
- Immutable reservation, expense and listing configuration DTOs
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
