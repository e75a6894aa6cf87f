"""Ownership-scoped task CRUD."""
