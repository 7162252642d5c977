"""
Contratos y base para providers de recursos.

Los providers (user, directory, file, service) implementan estos contratos;
el core no depende de ningún provider concreto.
"""

from faro.core.infra.contracts import ChangeRecord, ProviderContract
from faro.core.infra.base import BaseProvider

__all__ = ["BaseProvider", "ChangeRecord", "ProviderContract"]
