"""
Tests package - test suite for the Postgres operator.

Contains:
- unit/: Unit tests for individual components (Kubernetes API mocked)
- integration/: End-to-end tests against a real cluster
"""
