"""
Utility modules for the Postgres operator.

This package contains utility functions and classes for:
- Kubernetes cluster access and API error handling
- Deadline-bounded, cancellable polling
- Generic list/watch caches for custom resources
- Configuration assertions used by tests
"""
