"""
Operational helpers.
"""
