"""
Providers de recursos (user, directory, file, service) y sus colaboradores
(host local, almacén de assets, supervisor runit).
"""

from pathlib import Path
from typing import Dict, Optional

from faro.core.infra.contracts import ProviderContract
from faro.core.recipe.models import ResourceKind
from faro.providers.assets import Asset, AssetStore, DirectoryAssetStore
from faro.providers.directory import DirectoryProvider
from faro.providers.file import FileProvider
from faro.providers.host import LocalHost
from faro.providers.service import ServiceProvider
from faro.providers.supervision import RunitSupervisor, Supervisor
from faro.providers.user import UserProvider


def default_providers(
    assets_dir: Optional[Path] = None,
    host: Optional[LocalHost] = None,
    assets: Optional[AssetStore] = None,
    supervisor: Optional[Supervisor] = None,
) -> Dict[ResourceKind, ProviderContract]:
    """Registro tipo → provider con los colaboradores indicados (o los locales por defecto)."""
    host = host or LocalHost()
    if assets is None and assets_dir is not None:
        assets = DirectoryAssetStore(assets_dir)
    return {
        ResourceKind.USER: UserProvider(host),
        ResourceKind.DIRECTORY: DirectoryProvider(host),
        ResourceKind.FILE: FileProvider(assets, host),
        ResourceKind.SERVICE: ServiceProvider(supervisor or RunitSupervisor()),
    }


__all__ = [
    "Asset",
    "AssetStore",
    "DirectoryAssetStore",
    "DirectoryProvider",
    "FileProvider",
    "LocalHost",
    "RunitSupervisor",
    "ServiceProvider",
    "Supervisor",
    "UserProvider",
    "default_providers",
]
