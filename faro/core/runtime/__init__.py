"""
Runtime: contexto de ejecución, estado de recursos y resolución de rutas.

El contexto se pasa explícitamente a cada provider; nada depende de estado global.
"""

from faro.core.runtime.context import RunContext
from faro.core.runtime.resolver import assets_dir, recipe_dirs, target_root
from faro.core.runtime.state import ResourceState, StateDiff

__all__ = ["RunContext", "ResourceState", "StateDiff", "assets_dir", "recipe_dirs", "target_root"]
