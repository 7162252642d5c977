"""
Provider de archivos.

El contenido viene inline (`content`) o del almacén de assets (`asset`). Una diferencia
de contenido (sha256) o de modo obliga a reescribir. La escritura es atómica
(archivo temporal en el mismo directorio + rename).
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from faro.core.errors import PathError, PermissionDeniedError
from faro.core.infra.base import BaseProvider
from faro.core.recipe.models import FileSpec, ResourceKind
from faro.core.runtime.context import RunContext
from faro.core.runtime.state import StateDiff
from faro.providers.assets import AssetStore
from faro.providers.directory import fix_ownership, ownership_diffs
from faro.providers.host import LocalHost

_logger = logging.getLogger(__name__)


class FileProvider(BaseProvider):
    kind = ResourceKind.FILE

    def __init__(self, assets: Optional[AssetStore] = None, host: Optional[LocalHost] = None):
        self.assets = assets
        self.host = host or LocalHost()

    def identify(self, spec: FileSpec) -> str:
        return f"{self.kind.value}[{spec.path}]"

    def desired_content(self, spec: FileSpec) -> Optional[bytes]:
        """Bytes deseados; None si el contenido no se gestiona."""
        if spec.content is not None:
            return spec.content.encode()
        if spec.asset is not None:
            if self.assets is None:
                raise PathError(f"{spec.path}: no hay almacén de assets configurado para {spec.asset}")
            return self.assets.fetch(spec.asset).data
        return None

    def diff_create(self, spec: FileSpec, context: RunContext) -> List[StateDiff]:
        ref = self.identify(spec)
        real = context.resolve(spec.path)
        desired = self.desired_content(spec)
        if not real.exists():
            return [StateDiff(ref, "exists", True, False)]
        if not real.is_file():
            raise PathError(f"{spec.path} existe y no es un archivo regular")
        diffs: List[StateDiff] = []
        if desired is not None:
            actual_digest = _digest(real.read_bytes())
            desired_digest = _digest(desired)
            if actual_digest != desired_digest:
                diffs.append(StateDiff(ref, "content", desired_digest[:12], actual_digest[:12]))
        diffs.extend(ownership_diffs(self.host, ref, spec, real, context))
        return diffs

    def apply_create(self, spec: FileSpec, context: RunContext, diffs: List[StateDiff]) -> None:
        real = context.resolve(spec.path)
        if not real.parent.is_dir():
            raise PathError(f"{spec.path}: el directorio padre no existe")
        fields = {d.field for d in diffs}
        if "exists" in fields or "content" in fields:
            mode = spec.mode
            if mode is None and real.exists():
                mode = real.stat().st_mode & 0o7777
            self._write(spec.path, real, self.desired_content(spec) or b"", mode)
        fix_ownership(self.host, spec, real, context)

    def _write(self, path: str, real: Path, data: bytes, mode: Optional[int]) -> None:
        try:
            fd, tmp = tempfile.mkstemp(prefix=f".{real.name}.", dir=real.parent)
        except PermissionError as e:
            raise PermissionDeniedError(f"write {path}: {e}") from e
        except OSError as e:
            raise PathError(f"write {path}: {e}") from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp, mode if mode is not None else 0o644)
            os.replace(tmp, real)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        _logger.info("%s: escrito (%d bytes)", path, len(data))

    def diff_delete(self, spec: FileSpec, context: RunContext) -> List[StateDiff]:
        if not context.resolve(spec.path).exists():
            return []
        return [StateDiff(self.identify(spec), "exists", False, True)]

    def apply_delete(self, spec: FileSpec, context: RunContext, diffs: List[StateDiff]) -> None:
        real = context.resolve(spec.path)
        try:
            real.unlink(missing_ok=True)
        except PermissionError as e:
            raise PermissionDeniedError(f"rm {spec.path}: {e}") from e
        except IsADirectoryError as e:
            raise PathError(f"rm {spec.path}: {e}") from e
        _logger.info("%s: eliminado", spec.path)


def _digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
