"""Short random identifiers for connections."""

from __future__ import annotations

import base64
import uuid


def new_id() -> str:
    """Return a URL-safe identifier made from 12 bytes of a random UUID."""
    return base64.urlsafe_b64encode(uuid.uuid4().bytes[:12]).decode("ascii")