"""
Admission webhooks for the Postgres operator.

This package provides the validating and mutating admission webhooks for
Postgres custom resources. They are served by kopf's HTTPS webhook server
behind the validators.kubedb.com and mutators.kubedb.com APIServices.
Each module is imported only when its webhook is enabled.
"""
