from .diagnostics import assess_health, create_router

__all__ = ["assess_health", "create_router"]
