"""
Serving Module
"""
from .views import ReportView, UnknownViewError, ViewRegistry, default_registry

__all__ = [
    "ReportView",
    "UnknownViewError",
    "ViewRegistry",
    "default_registry",
]
