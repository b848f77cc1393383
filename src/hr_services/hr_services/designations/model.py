from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Designation:
    """Catalog entry. ``rank`` grows with seniority."""

    code: str
    name: str
    rank: int
