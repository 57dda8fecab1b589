"""
Shared utilities for the DayOrg services.

This package aggregates common building blocks consumed by all services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- observability: Request instrumentation middleware
- errors: Canonical error types and responses
- retry: Retry decorators for startup connections

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
