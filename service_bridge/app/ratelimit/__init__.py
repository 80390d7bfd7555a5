"""
Rate limiting package for the Bridge.

Holds the per-key admission limiter that protects the brokerage's
per-account order placement ceiling.
"""

from .admission import AdmissionResult, PerKeyAdmissionLimiter

__all__ = ["AdmissionResult", "PerKeyAdmissionLimiter"]
