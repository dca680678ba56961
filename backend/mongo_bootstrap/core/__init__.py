"""
Core utilities: error taxonomy and password resolution.
"""
