"""
Domain Layer
============
Entities, value objects and the exception hierarchy.
"""
