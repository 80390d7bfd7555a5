"""
Domain package for the Bridge.

- auth_middleware: shared-secret guard for trading routes
- relay: single-call upstream relay and response rendering
"""

from .auth_middleware import SharedSecretGuard
from .relay import relay, render_failure, render_success

__all__ = ["SharedSecretGuard", "relay", "render_failure", "render_success"]
