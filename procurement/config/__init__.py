"""
Configuration package for the procurement approval service.

Holds environment settings, including the organisational topology
(central unit, central-scope roles) consumed by the approval router.
"""

from procurement.config.settings import Settings, get_settings, settings

__all__ = ['Settings', 'get_settings', 'settings']
