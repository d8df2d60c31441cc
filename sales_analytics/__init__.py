"""
Sales Warehouse Analytics

Customer and product reporting over a star-schema sales warehouse.
"""

__version__ = "1.0.0"
