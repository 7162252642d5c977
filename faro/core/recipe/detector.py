"""
Dependencias entre declaraciones y combinación de diffs.

Dependencias implícitas (además de `requires`):
- owner/group/user que nombran un usuario declarado → depende de ese usuario.
- ruta bajo un directorio declarado → depende de ese directorio.
"""

from pathlib import PurePosixPath
from typing import Dict, List

from faro.core.recipe.models import (
    DirectorySpec,
    FileSpec,
    ResourceDeclaration,
    ServiceSpec,
    UserSpec,
    parse_reference,
)
from faro.core.runtime.state import StateDiff


def merge_diffs(diff_lists: List[List[StateDiff]]) -> List[StateDiff]:
    """Combina listas de diffs de varios providers y devuelve una sola lista."""
    out: List[StateDiff] = []
    seen: set = set()
    for lst in diff_lists:
        for d in lst:
            key = (d.resource_id, d.field)
            if key not in seen:
                seen.add(key)
                out.append(d)
    return out


def dependency_map(declarations: List[ResourceDeclaration]) -> Dict[str, List[str]]:
    """
    ref → refs de las que depende (solo declaraciones anteriores en el orden de la receta).
    Asume declaraciones ya validadas.
    """
    specs = {d.ref: d.spec() for d in declarations}
    users = {s.name: ref for ref, s in specs.items() if isinstance(s, UserSpec)}
    deps: Dict[str, List[str]] = {}
    earlier: List[str] = []
    for decl in declarations:
        spec = specs[decl.ref]
        found: List[str] = []
        for reference in decl.requires:
            kind, identifier = parse_reference(reference)
            found.append(f"{kind.value}[{identifier}]")
        for account in _accounts(spec):
            if account in users:
                found.append(users[account])
        for path in _paths(spec):
            for ref in earlier:
                other = specs[ref]
                if isinstance(other, DirectorySpec) and _is_under(path, other.paths()):
                    found.append(ref)
        deps[decl.ref] = [r for r in dict.fromkeys(found) if r in earlier]
        earlier.append(decl.ref)
    return deps


def _accounts(spec) -> List[str]:
    if isinstance(spec, (DirectorySpec, FileSpec)):
        return [a for a in (spec.owner, spec.group) if a]
    if isinstance(spec, ServiceSpec) and spec.user:
        return [spec.user]
    return []


def _paths(spec) -> List[str]:
    if isinstance(spec, DirectorySpec):
        return spec.paths()
    if isinstance(spec, FileSpec):
        return [spec.path]
    return []


def _is_under(path: str, parents: List[str]) -> bool:
    candidate = PurePosixPath(path)
    for parent in parents:
        parent_path = PurePosixPath(parent)
        if candidate != parent_path and parent_path in candidate.parents:
            return True
    return False
