"""
Almacén de assets: entrega contenido empaquetado por nombre (binarios, payloads).

El motor no gestiona versiones; solo consume bytes, checksum y la etiqueta de versión.
"""

import hashlib
import logging
from pathlib import Path
from typing import Dict, Protocol

from faro.core.errors import AssetFetchError

_logger = logging.getLogger(__name__)


class Asset:
    def __init__(self, name: str, data: bytes, checksum: str, version: str):
        self.name = name
        self.data = data
        self.checksum = checksum
        self.version = version

    def __repr__(self):
        return f"Asset({self.name!r}, version={self.version!r})"


class AssetStore(Protocol):
    def fetch(self, name: str) -> Asset:
        ...


class DirectoryAssetStore:
    """
    Assets como archivos en un directorio (equivalente a files/ de una receta).
    La versión se lee de `<nombre>.version` si existe; si no, es el prefijo del checksum.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._cache: Dict[str, Asset] = {}

    def fetch(self, name: str) -> Asset:
        if name in self._cache:
            return self._cache[name]
        path = self.root / name
        if not path.is_file():
            raise AssetFetchError(f"Asset no encontrado: {name} (en {self.root})")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise AssetFetchError(f"No se pudo leer el asset {name}: {e}") from e
        checksum = hashlib.sha256(data).hexdigest()
        version_file = self.root / f"{name}.version"
        version = version_file.read_text().strip() if version_file.is_file() else checksum[:12]
        asset = Asset(name, data, checksum, version)
        _logger.debug("Asset %s cargado (%d bytes, %s)", name, len(data), version)
        self._cache[name] = asset
        return asset
