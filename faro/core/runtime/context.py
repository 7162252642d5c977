"""
Contexto de ejecución: host, privilegios y raíz del sistema de archivos objetivo.
"""

import os
import socket
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Optional

from faro.core.errors import ValidationError


@dataclass(frozen=True)
class RunContext:
    host: str
    privileged: bool
    root: Path = field(default_factory=lambda: Path("/"))
    why_run: bool = False

    @classmethod
    def detect(cls, root: Optional[Path] = None, why_run: bool = False) -> "RunContext":
        """Contexto del proceso actual: hostname y euid."""
        return cls(
            host=socket.gethostname(),
            privileged=os.geteuid() == 0,
            root=Path(root) if root is not None else Path("/"),
            why_run=why_run,
        )

    def resolve(self, path: str) -> Path:
        """Traduce una ruta absoluta declarada a la ruta real bajo `root`."""
        declared = PurePosixPath(path)
        if not declared.is_absolute():
            raise ValidationError(f"La ruta debe ser absoluta: {path!r}")
        if ".." in declared.parts:
            raise ValidationError(f"La ruta no puede salir de la raíz {self.root}: {path!r}")
        return self.root.joinpath(*declared.parts[1:])
