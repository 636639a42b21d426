from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class GraphError(Exception):
    """Error envelope for snapshot files. Returned by validate/lint, raised only by the loader.

    `code` prefixes tell the stage apart: `E_` for load and validation
    failures, `L_` for lint findings.
    """

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    @property
    def source(self) -> str:
        return "lint" if self.code.startswith("L_") else "validate"

    def sort_key(self) -> tuple[str, str, str]:
        return (self.file or "", self.path or "", self.code)

    def as_item(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "file": self.file,
            "path": self.path,
            "severity": "error",
            "source": self.source,
        }

    def __str__(self) -> str:
        loc = ":".join(p for p in (self.file, self.path) if p) or "<snapshot>"
        return f"{loc}: {self.code}: {self.message}"


class SnapshotLoadError(GraphError):
    @property
    def source(self) -> str:
        return "load"


class SnapshotValidationError(GraphError):
    pass
