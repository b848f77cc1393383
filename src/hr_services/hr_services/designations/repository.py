from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Designation


class DesignationRepository(Protocol):
    def get(self, code: str) -> Optional[Designation]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Designation]:
        raise NotImplementedError
