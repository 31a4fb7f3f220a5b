"""
KubeDB Postgres Operator - admission webhook lifecycle orchestration.

This package provides the pieces needed to bring the Postgres admission
webhooks up and down safely on a cluster:
- Idempotent registration of the operator's custom resource definitions
- Readiness gating on the aggregated webhook APIServices
- Best-effort, idempotent teardown of every admission-related object
"""

__version__ = "0.1.0"
