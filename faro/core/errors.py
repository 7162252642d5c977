"""
Errores de faro.

El core solo define excepciones; las capas (CLI/reporte) se encargan del formato de salida.
Cada error expone `kind`, el nombre con el que aparece en el reporte de ejecución.
"""


class FaroError(Exception):
    """Error base de faro."""
    kind = "FaroError"


class ValidationError(FaroError):
    """Declaración o receta mal formada (se detecta antes de cualquier mutación)."""
    kind = "ValidationError"


class ConfigError(FaroError):
    """Error de configuración (receta inexistente, YAML inválido)."""
    kind = "ConfigError"


class ProviderError(FaroError):
    """Error delegado desde un provider (comando del sistema fallido, etc.)."""
    kind = "ProviderError"


class PermissionDeniedError(ProviderError):
    """Privilegios insuficientes para crear usuarios o servicios. Aborta la ejecución."""
    kind = "PermissionError"


class PathError(ProviderError):
    """Ruta inválida o no se pudo crear el directorio padre."""
    kind = "PathError"


class AssetFetchError(ProviderError):
    """El almacén de assets no pudo entregar el contenido pedido."""
    kind = "AssetFetchError"


class SupervisionError(ProviderError):
    """El supervisor de procesos rechazó el registro o el reinicio."""
    kind = "SupervisionError"


class DependencyError(FaroError):
    """Un recurso del que se depende terminó en Failed."""
    kind = "DependencyError"


class AbortedError(FaroError):
    """La ejecución se abortó antes de llegar a este recurso."""
    kind = "Aborted"
