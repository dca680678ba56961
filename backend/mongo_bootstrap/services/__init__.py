"""
Service layer.
"""
from mongo_bootstrap.services.bootstrap_service import BootstrapService, order_specs

__all__ = ["BootstrapService", "order_specs"]
