# pixelmatch/data/__init__.py
"""Versioned data files shipped with the package."""
