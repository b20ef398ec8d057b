"""
Features package — each sub-package encapsulates a self-contained feature.

Convention:
  features/<feature_name>/
    __init__.py      — public API re-exports
    models.py        — data models specific to this feature
    store.py         — session-scoped state (if applicable)
    lifecycle.py     — state transitions on the feature's records (if applicable)
    ...              — any other feature-specific modules
"""
