"""
Brokerage Bridge service package.

The bridge sits between the backend and the brokerage API, enforcing:
- Shared-secret authentication on trading routes
- Schema and cross-field validation of every request
- Per-account admission control for crypto order placement
- Faithful relay of upstream payloads, status codes and diagnostic headers

Structure:
- app.main: FastAPI app and route wiring.
- app.adapters: signed HTTP client for the brokerage API.
- app.schemas: request models and outbound field mapping.
- app.upstream: header access, response unwrapping, failure normalization.
- app.ratelimit: per-key admission limiter.
- app.domain: shared-secret guard and the relay.
"""
