"""Environment orchestration components.

- Settings loaded from .env
- Console/JSON logging
- Scaffold, Docker lifecycle and admin key handlers
"""
