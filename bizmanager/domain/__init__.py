"""
Domain layer - Enterprise Business Rules.

Entities, enums and typed exceptions for the authorization core. It has no
dependencies on other layers.
"""
