"""Devstack setup.

Bootstraps a local development environment:
- scaffolds a Next.js client wired to a self-hosted Convex backend
- drives Docker Compose for the backend, dashboard, client and deploy sidecar
- generates and distributes the backend admin key
"""

__version__ = "0.1.0"

from devstack_setup.orchestrator.config import DevstackSettings

__all__ = ["__version__", "DevstackSettings"]
