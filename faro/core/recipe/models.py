"""
Modelo de recursos: declaraciones de estado deseado (agnósticas de provider y filesystem).

Una declaración se direcciona como `kind[identifier]`, p. ej. `file[bastion]`.
Sus atributos se validan contra el spec del tipo (UserSpec, DirectorySpec, FileSpec, ServiceSpec).
"""

import re
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from faro.core.errors import ValidationError


class ResourceKind(str, Enum):
    USER = "user"
    DIRECTORY = "directory"
    FILE = "file"
    SERVICE = "service"


class Action(str, Enum):
    CREATE = "create"
    DELETE = "delete"
    NOTHING = "nothing"


_REFERENCE_RE = re.compile(r"^(?P<kind>[a-z_]+)\[(?P<identifier>.+)\]$")
_ACCOUNT_RE = re.compile(r"^[a-z_][a-z0-9_.-]*\$?$")


def parse_reference(reference: str) -> Tuple[ResourceKind, str]:
    """`file[bastion]` → (ResourceKind.FILE, "bastion")."""
    match = _REFERENCE_RE.match(reference.strip())
    if not match:
        raise ValidationError(f"Referencia inválida: {reference!r} (formato esperado: tipo[identificador])")
    try:
        kind = ResourceKind(match["kind"])
    except ValueError:
        raise ValidationError(f"Tipo de recurso desconocido en referencia: {reference!r}")
    return kind, match["identifier"]


def parse_mode(value: Union[int, str, None]) -> Optional[int]:
    """Acepta 0o755, 493, "0755" o "755"; devuelve los bits de permiso como int."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("el modo no puede ser booleano")
    if isinstance(value, str):
        text = value.strip()
        if not text or any(c not in "01234567" for c in text):
            raise ValueError(f"modo octal inválido: {value!r}")
        value = int(text, 8)
    if not 0 <= value <= 0o7777:
        raise ValueError(f"modo fuera de rango: {oct(value)}")
    return value


def _account_name(value: str, what: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{what} no puede estar vacío")
    if not _ACCOUNT_RE.match(value):
        raise ValueError(f"{what} inválido: {value!r}")
    return value


def _absolute(value: str, what: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{what} no puede estar vacío")
    if not PurePosixPath(value).is_absolute():
        raise ValueError(f"{what} debe ser una ruta absoluta: {value!r}")
    if ".." in PurePosixPath(value).parts:
        raise ValueError(f"{what} no puede contener '..': {value!r}")
    return str(PurePosixPath(value))


class _Owned(BaseModel):
    """Campos comunes de ownership y permisos."""
    owner: Optional[str] = None
    group: Optional[str] = None
    mode: Optional[int] = Field(None, description="Bits de permiso (acepta '0755')")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, v):
        return parse_mode(v)

    @field_validator("owner", "group")
    @classmethod
    def _check_account(cls, v):
        return None if v is None else _account_name(v, "owner/group")


class UserSpec(BaseModel):
    """Cuenta del sistema. Solo se crea si falta; nunca se modifica una existente."""
    name: str
    shell: str = "/bin/bash"
    home: str
    is_system_account: bool = Field(False, alias="system")
    manage_home: bool = False

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("name")
    @classmethod
    def _check_name(cls, v):
        return _account_name(v, "El nombre de usuario")

    @field_validator("shell", "home")
    @classmethod
    def _check_paths(cls, v, info):
        return _absolute(v, info.field_name)


class DirectorySpec(_Owned):
    """
    Directorio (o conjunto de subdirectorios con el mismo spec).

    Con `names`, el spec se aplica idéntico a `path/<name>` para cada nombre.
    Con `recursive`, se crean los ancestros faltantes; sin él, un padre inexistente es PathError.
    """
    path: str
    recursive: bool = False
    names: List[str] = Field(default_factory=list)

    @field_validator("path")
    @classmethod
    def _check_path(cls, v):
        return _absolute(v, "path")

    @field_validator("names")
    @classmethod
    def _check_names(cls, v):
        for name in v:
            if not name or "/" in name or name in (".", ".."):
                raise ValueError(f"nombre de subdirectorio inválido: {name!r}")
        if len(set(v)) != len(v):
            raise ValueError("nombres de subdirectorio duplicados")
        return v

    def paths(self) -> List[str]:
        if not self.names:
            return [self.path]
        return [str(PurePosixPath(self.path, name)) for name in self.names]


class FileSpec(_Owned):
    """
    Archivo gestionado.

    Origen del contenido: `content` (inline) o `asset` (provisto por el almacén de assets).
    Sin origen, solo se gestiona existencia, ownership y modo.
    """
    path: str
    content: Optional[str] = None
    asset: Optional[str] = None

    @field_validator("path")
    @classmethod
    def _check_path(cls, v):
        return _absolute(v, "path")

    @field_validator("asset")
    @classmethod
    def _check_asset(cls, v):
        if v is not None and (not v.strip() or "/" in v or v in (".", "..")):
            raise ValueError(f"nombre de asset inválido: {v!r}")
        return v

    @model_validator(mode="after")
    def _single_source(self):
        if self.content is not None and self.asset is not None:
            raise ValueError("'content' y 'asset' son excluyentes")
        return self

    @property
    def source(self) -> Optional[str]:
        if self.asset is not None:
            return f"asset:{self.asset}"
        if self.content is not None:
            return "inline"
        return None


class ServiceSpec(BaseModel):
    """Servicio supervisado. Solo se declara el estado deseado en el supervisor."""
    name: str
    enable_default_logging: bool = Field(False, alias="default_logger")
    command: Optional[str] = None
    user: Optional[str] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("name")
    @classmethod
    def _check_name(cls, v):
        if not v or not v.strip() or "/" in v:
            raise ValueError(f"nombre de servicio inválido: {v!r}")
        return v

    @field_validator("command")
    @classmethod
    def _check_command(cls, v):
        return None if v is None else _absolute(v, "command")

    @field_validator("user")
    @classmethod
    def _check_user(cls, v):
        return None if v is None else _account_name(v, "user")

    @property
    def run_command(self) -> str:
        return self.command or f"/opt/{self.name}/bin/{self.name}"


Spec = Union[UserSpec, DirectorySpec, FileSpec, ServiceSpec]

_SPEC_TYPES = {
    ResourceKind.USER: (UserSpec, "name"),
    ResourceKind.DIRECTORY: (DirectorySpec, "path"),
    ResourceKind.FILE: (FileSpec, "path"),
    ResourceKind.SERVICE: (ServiceSpec, "name"),
}


class Subscription(BaseModel):
    """Ejecuta `action` sobre este recurso si `resource` terminó en Changed."""
    action: str
    resource: str

    model_config = ConfigDict(extra="forbid")


class ResourceDeclaration(BaseModel):
    """Declaración de estado deseado de un recurso."""
    kind: ResourceKind
    identifier: str
    attributes: Dict[str, Any] = Field(default_factory=dict)
    action: Action = Action.CREATE
    requires: List[str] = Field(default_factory=list, description="Referencias tipo[identificador]")
    subscribes: List[Subscription] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("identifier")
    @classmethod
    def _check_identifier(cls, v):
        if not v or not v.strip():
            raise ValueError("el identificador no puede estar vacío")
        return v

    @property
    def ref(self) -> str:
        return f"{self.kind.value}[{self.identifier}]"

    def spec(self) -> Spec:
        """
        Construye el spec tipado a partir de los atributos.
        El identificador es el nombre/ruta por defecto (p. ej. file[bastion] con path explícito).
        """
        spec_type, key = _SPEC_TYPES[self.kind]
        data = dict(self.attributes)
        data.setdefault(key, self.identifier)
        try:
            return spec_type.model_validate(data)
        except PydanticValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or key}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(f"{self.ref}: {details}") from e


class RecipeConfig(BaseModel):
    """Opciones que unifican las variantes de la receta."""
    asset_source: Optional[str] = Field(None, description="Asset del binario; None = archivo plano")
    recursive: bool = True

    model_config = ConfigDict(extra="forbid")


class Recipe(BaseModel):
    """Receta: secuencia ordenada de declaraciones más sus opciones."""
    name: str
    description: Optional[str] = None
    options: RecipeConfig = Field(default_factory=RecipeConfig)
    resources: List[ResourceDeclaration] = Field(default_factory=list)
    directory: Optional[Path] = Field(None, exclude=True, description="Directorio de origen de la receta")

    model_config = ConfigDict(extra="forbid")
