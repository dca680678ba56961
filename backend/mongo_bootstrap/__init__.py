"""
mongo-bootstrap - declarative MongoDB users, collections and indexes.
"""

__version__ = "0.1.0"
