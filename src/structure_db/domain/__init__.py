"""Domain layer - errors, value objects and services.

Nothing in this package touches the relational engine directly; services
reach it through callables supplied by the Connection.
"""
