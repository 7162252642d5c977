"""
Recipe: modelo de recursos, validación, dependencias, planificación y carga de recetas.
"""

from faro.core.recipe.models import (
    Action,
    DirectorySpec,
    FileSpec,
    Recipe,
    RecipeConfig,
    ResourceDeclaration,
    ResourceKind,
    ServiceSpec,
    Subscription,
    UserSpec,
    parse_mode,
    parse_reference,
)
from faro.core.recipe.validator import collect_errors, validate_declarations
from faro.core.recipe.planner import plan_from_diffs
from faro.core.recipe.detector import dependency_map, merge_diffs
from faro.core.recipe.loader import find_recipe, list_recipes, load_recipe, resolve_options

__all__ = [
    "Action",
    "DirectorySpec",
    "FileSpec",
    "Recipe",
    "RecipeConfig",
    "ResourceDeclaration",
    "ResourceKind",
    "ServiceSpec",
    "Subscription",
    "UserSpec",
    "parse_mode",
    "parse_reference",
    "collect_errors",
    "validate_declarations",
    "plan_from_diffs",
    "dependency_map",
    "merge_diffs",
    "find_recipe",
    "list_recipes",
    "load_recipe",
    "resolve_options",
]
