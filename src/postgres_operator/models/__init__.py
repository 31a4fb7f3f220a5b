"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- APIService registrations, their conditions and annotations
- Label selectors and teardown targets/reports
- CustomResourceDefinition descriptors
- Postgres and PostgresVersion specifications
"""
