"""
Setup Pricing Package

Pricing configurator for customised CCTV setups.
Resolves a component catalog from an admin blueprint with built-in fallback
pricing, recommends capacity tiers and computes MRP / sale totals.
"""

__version__ = "1.0.0"
