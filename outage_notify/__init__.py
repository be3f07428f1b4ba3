"""Outage and usage-cap notification engine.

The package re-exports nothing; import the layer you need from
``outage_notify.application`` or ``outage_notify.infrastructure``.
"""
