"""
Loader de recetas: YAML → modelos Pydantic.

Estructura buscada en cada directorio de recetas:
    <dir>/<nombre>/recipe.yaml   (con assets en <dir>/<nombre>/files/)
    <dir>/<nombre>.yaml

Los atributos pueden referenciar opciones de la receta con `$opcion`
(p. ej. `recursive: $recursive`); se resuelven con un RecipeConfig.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from faro.core.errors import ConfigError, ValidationError
from faro.core.recipe.models import Recipe, RecipeConfig, ResourceDeclaration
from faro.core.runtime.resolver import recipe_dirs

_OPTION_RE = re.compile(r"^\$(?P<name>[a-z_][a-z0-9_]*)$")


def find_recipe(name: str, search_dirs: Optional[List[Path]] = None) -> Path:
    """Devuelve el archivo de la receta; la primera coincidencia en orden de prioridad gana."""
    for directory in search_dirs if search_dirs is not None else recipe_dirs():
        for candidate in (directory / name / "recipe.yaml", directory / f"{name}.yaml"):
            if candidate.is_file():
                return candidate
    raise ConfigError(f"Receta no encontrada: {name}")


def list_recipes(search_dirs: Optional[List[Path]] = None) -> Dict[str, Path]:
    """nombre → archivo, respetando la prioridad de los directorios."""
    found: Dict[str, Path] = {}
    for directory in search_dirs if search_dirs is not None else recipe_dirs():
        if not directory.is_dir():
            continue
        for entry in sorted(directory.iterdir()):
            if entry.is_dir() and (entry / "recipe.yaml").is_file():
                found.setdefault(entry.name, entry / "recipe.yaml")
            elif entry.is_file() and entry.suffix == ".yaml":
                found.setdefault(entry.stem, entry)
    return found


def load_recipe(path: Path) -> Recipe:
    """Carga y valida la estructura de una receta (no resuelve opciones)."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error al parsear YAML {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"No se pudo leer la receta {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"La receta debe ser un mapeo YAML: {path}")
    data.setdefault("name", path.parent.name if path.name == "recipe.yaml" else path.stem)
    try:
        recipe = Recipe.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Receta inválida {path}:\n{e}") from e
    recipe.directory = path.parent
    return recipe


def resolve_options(recipe: Recipe, config: Optional[RecipeConfig] = None) -> List[ResourceDeclaration]:
    """
    Sustituye `$opcion` en los atributos por el valor de la configuración.
    Sin config se usan las opciones declaradas en la receta.
    """
    options = (config or recipe.options).model_dump()
    resolved: List[ResourceDeclaration] = []
    for decl in recipe.resources:
        attributes = {key: _substitute(decl.ref, key, value, options) for key, value in decl.attributes.items()}
        resolved.append(decl.model_copy(update={"attributes": attributes}))
    return resolved


def _substitute(ref: str, key: str, value: Any, options: Dict[str, Any]) -> Any:
    if not isinstance(value, str):
        return value
    match = _OPTION_RE.match(value)
    if not match:
        return value
    name = match["name"]
    if name not in options:
        raise ValidationError(f"{ref}: {key} referencia una opción desconocida: {value}")
    return options[name]
