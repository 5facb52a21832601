# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import FakeProvider, make_visual_discrepancy
"""

from .utils import FakeProvider, FakeProviderFactory, make_settings, make_visual_discrepancy

__all__ = ["FakeProvider", "FakeProviderFactory", "make_settings", "make_visual_discrepancy"]
