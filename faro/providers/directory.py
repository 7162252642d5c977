"""
Provider de directorios.

Crea la ruta (con `recursive`, también los ancestros faltantes) con owner/group/mode;
si ya existe, solo corrige lo que difiere. Con `names` aplica el mismo spec a cada
subdirectorio y la declaración produce un único registro.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from faro.core.errors import PathError, PermissionDeniedError
from faro.core.infra.base import BaseProvider
from faro.core.recipe.models import DirectorySpec, ResourceKind
from faro.core.runtime.context import RunContext
from faro.core.runtime.state import StateDiff
from faro.providers.host import LocalHost

_logger = logging.getLogger(__name__)


def ownership_diffs(host: LocalHost, ref: str, spec, real: Path, context: RunContext) -> List[StateDiff]:
    """Diffs de mode/owner/group de una ruta existente (compartido con el provider de archivos)."""
    diffs: List[StateDiff] = []
    if spec.mode is not None:
        actual_mode = real.stat().st_mode & 0o7777
        if actual_mode != spec.mode:
            diffs.append(StateDiff(ref, "mode", spec.mode, actual_mode))
    if spec.owner is not None or spec.group is not None:
        owner, group = host.owner_of(real, context.root)
        if spec.owner is not None and owner != spec.owner:
            diffs.append(StateDiff(ref, "owner", spec.owner, owner))
        if spec.group is not None and group != spec.group:
            diffs.append(StateDiff(ref, "group", spec.group, group))
    return diffs


def fix_ownership(host: LocalHost, spec, real: Path, context: RunContext) -> None:
    """Aplica mode y, si difieren, owner/group."""
    if spec.mode is not None:
        real.chmod(spec.mode)
    if spec.owner is not None or spec.group is not None:
        owner, group = host.owner_of(real, context.root)
        if (spec.owner or owner) != owner or (spec.group or group) != group:
            host.chown(real, spec.owner, spec.group, context.root)


class DirectoryProvider(BaseProvider):
    kind = ResourceKind.DIRECTORY

    def __init__(self, host: Optional[LocalHost] = None):
        self.host = host or LocalHost()

    def diff_create(self, spec: DirectorySpec, context: RunContext) -> List[StateDiff]:
        diffs: List[StateDiff] = []
        for path in spec.paths():
            ref = f"{self.kind.value}[{path}]"
            real = context.resolve(path)
            if not real.exists():
                diffs.append(StateDiff(ref, "exists", True, False))
                continue
            if not real.is_dir():
                raise PathError(f"{path} existe y no es un directorio")
            diffs.extend(ownership_diffs(self.host, ref, spec, real, context))
        return diffs

    def apply_create(self, spec: DirectorySpec, context: RunContext, diffs: List[StateDiff]) -> None:
        pending = {d.resource_id for d in diffs}
        for path in spec.paths():
            if f"{self.kind.value}[{path}]" not in pending:
                continue
            real = context.resolve(path)
            if not real.exists():
                self._create(path, real, spec.recursive)
            fix_ownership(self.host, spec, real, context)

    def _create(self, path: str, real: Path, recursive: bool) -> None:
        if not recursive and not real.parent.is_dir():
            raise PathError(f"{path}: el directorio padre no existe (recursive desactivado)")
        try:
            real.mkdir(parents=recursive)
        except PermissionError as e:
            raise PermissionDeniedError(f"mkdir {path}: {e}") from e
        except OSError as e:
            raise PathError(f"mkdir {path}: {e}") from e
        _logger.info("%s: directorio creado", path)

    def diff_delete(self, spec: DirectorySpec, context: RunContext) -> List[StateDiff]:
        return [
            StateDiff(f"{self.kind.value}[{path}]", "exists", False, True)
            for path in spec.paths()
            if context.resolve(path).exists()
        ]

    def apply_delete(self, spec: DirectorySpec, context: RunContext, diffs: List[StateDiff]) -> None:
        for path in spec.paths():
            real = context.resolve(path)
            if not real.exists():
                continue
            try:
                if spec.recursive:
                    shutil.rmtree(real)
                else:
                    real.rmdir()
            except PermissionError as e:
                raise PermissionDeniedError(f"rm {path}: {e}") from e
            except OSError as e:
                raise PathError(f"rm {path}: {e}") from e
            _logger.info("%s: directorio eliminado", path)
