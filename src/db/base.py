from __future__ import annotations

from sqlalchemy import MetaData

# Shared metadata for every table the result store owns; Alembic targets it.
metadata = MetaData()
