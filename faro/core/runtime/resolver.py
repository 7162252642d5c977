"""
Resolución de rutas de recetas, assets y raíz del host objetivo.

- recipe_dirs(): directorios donde buscar recetas (FARO_RECIPES_PATH + recetas incluidas).
- assets_dir(): directorio de assets de una receta (FARO_ASSETS_DIR o <receta>/files).
- target_root(): prefijo del sistema de archivos objetivo (FARO_TARGET_ROOT o /).

El core NO escribe en disco; solo expone estas rutas.
"""

import os
from pathlib import Path
from typing import List, Optional


# Recetas incluidas en el paquete
BUNDLED_RECIPES = Path(__file__).resolve().parents[2] / "recipes"


def recipe_dirs() -> List[Path]:
    """
    Directorios de recetas en orden de prioridad.
    Las rutas de FARO_RECIPES_PATH (separadas por os.pathsep) tienen prioridad sobre las incluidas.
    """
    dirs: List[Path] = []
    extra = os.environ.get("FARO_RECIPES_PATH", "").strip()
    for chunk in extra.split(os.pathsep):
        if chunk.strip():
            dirs.append(Path(chunk.strip()).expanduser().resolve())
    dirs.append(BUNDLED_RECIPES)
    return dirs


def assets_dir(recipe_dir: Path, override: Optional[Path] = None) -> Path:
    """Directorio de assets: argumento explícito → FARO_ASSETS_DIR → <receta>/files."""
    if override is not None:
        return Path(override).expanduser().resolve()
    explicit = os.environ.get("FARO_ASSETS_DIR", "").strip()
    if explicit:
        return Path(explicit).expanduser().resolve()
    return recipe_dir / "files"


def target_root(override: Optional[Path] = None) -> Path:
    """Raíz del host objetivo; "/" salvo que se indique otra (útil para imágenes o pruebas)."""
    if override is not None:
        return Path(override).expanduser().resolve()
    explicit = os.environ.get("FARO_TARGET_ROOT", "").strip()
    if explicit:
        return Path(explicit).expanduser().resolve()
    return Path("/")
