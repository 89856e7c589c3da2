"""Routers package — HTTP endpoint definitions.

Only the versioned API exists; every module in v1/ exposes ``router`` and is
mounted under /api/v1 by ``portal.main.create_app``.
"""
