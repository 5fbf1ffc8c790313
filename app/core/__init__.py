"""
Core building blocks: domain base classes, dependency container, app factory
and lifecycle.
"""
