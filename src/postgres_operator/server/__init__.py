"""
Webhook server bootstrap for the Postgres operator.

The admission webhooks are served by kopf's HTTPS webhook server; this
package validates the server options and runs it.
"""

from .bootstrap import ServerConfig, ServerOptions, configure, run

__all__ = ["ServerConfig", "ServerOptions", "configure", "run"]
