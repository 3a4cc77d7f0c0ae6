"""
HTTP API for artifact recognition.
"""
