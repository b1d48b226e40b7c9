"""Infrastructure adapters for external systems.

- **transport**: The transport contract consumed by the dispatcher and its
  default implementation on top of ``httpx.AsyncClient``.
"""
