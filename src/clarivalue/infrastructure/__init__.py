"""
ClariValue Infrastructure Layer

Remote analysis calls, progress persistence and JSON helpers.
"""
