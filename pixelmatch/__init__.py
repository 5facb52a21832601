# pixelmatch/__init__.py
"""
PixelMatch: design-vs-implementation review core.

Compares a design mockup with a website screenshot through an external vision
model, persists the reported discrepancies and keeps a project audit trail.
"""

__version__ = "0.3.0"
