from __future__ import annotations

import uuid


def new_id() -> str:
    """Collision-free string identifier for catalog, ledger and partner rows."""
    return str(uuid.uuid4())
