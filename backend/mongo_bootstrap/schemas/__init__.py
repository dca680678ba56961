"""
Report schemas.
"""
from mongo_bootstrap.schemas.report import BootstrapReport

__all__ = ["BootstrapReport"]
