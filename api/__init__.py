"""
api — error taxonomy, shared dependencies, middleware and CRUD routes.
"""
