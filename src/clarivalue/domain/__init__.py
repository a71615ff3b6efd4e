"""
ClariValue Domain Layer

Valuation models, error taxonomy and the pure domain services.
"""
