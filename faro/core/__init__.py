"""
Core: modelo de recursos, motor de convergencia y reporte.

ENFORCEMENT (arquitectura limpia):
- Este paquete NO debe importar: faro.cli ni faro.providers (implementaciones).
- Permitido: typing, pathlib.Path, pydantic, yaml, rich (solo para el render del reporte),
  faro.core.* (errors, runtime, infra, recipe).
- Los providers y la CLI importan desde core; nunca al revés.
"""

from faro.core.errors import (
    FaroError,
    ValidationError,
    ConfigError,
    ProviderError,
    PermissionDeniedError,
    PathError,
    AssetFetchError,
)

__all__ = [
    "FaroError",
    "ValidationError",
    "ConfigError",
    "ProviderError",
    "PermissionDeniedError",
    "PathError",
    "AssetFetchError",
]
