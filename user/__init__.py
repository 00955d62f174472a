"""
User-configurable modules for the yy -> ll analysis.

This package contains modules that are intended to be modified by users:
- configuration: Main analysis configuration
"""
