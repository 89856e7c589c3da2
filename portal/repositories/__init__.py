"""Repositories package — SQLAlchemy queries, tenant-scoped and soft-delete aware.

How to add a new repository:
  1. class MyEntityRepository(BaseRepository[MyEntity]):
         model = MyEntity
  2. Add domain-specific query methods as needed
"""
