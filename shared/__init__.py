"""
Shared utilities for the Brokerage Bridge.

This package aggregates common building blocks consumed by bridge services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Locally resolved error types and responses
- base_service: FastAPI app scaffolding shared by services

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
