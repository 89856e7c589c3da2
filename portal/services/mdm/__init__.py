"""Master Data Management (MDM Hulu Migas).

  validators.py — pure rule checks shared by every write path
  service.py    — per-domain CRUD, key checks and statistics
  transfer.py   — central validation, CSV import, compliance export
"""
