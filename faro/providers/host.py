"""
Módulo Host - Interfaz con el sistema operativo local

Cuentas de usuario (pwd/grp o /etc/passwd bajo una raíz alternativa), ownership y comandos.
Cada llamada es síncrona y puede fallar por separado.
"""

import grp
import logging
import os
import pwd
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from faro.core.errors import PermissionDeniedError, ProviderError
from faro.core.recipe.models import UserSpec

_logger = logging.getLogger(__name__)

# Códigos de salida de useradd/userdel
_EXIT_CANT_UPDATE_PASSWD = 1
_EXIT_USER_EXISTS = 9
_EXIT_USER_MISSING = 6


def run_command(
    command: List[str],
    cwd: Optional[Path] = None,
    timeout: int = 30,
) -> Tuple[int, str, str]:
    """
    Ejecuta un comando del sistema

    Args:
        command: Lista con comando y argumentos
        cwd: Directorio de trabajo
        timeout: Timeout en segundos

    Returns:
        Tuple (returncode, stdout, stderr)
    """
    _logger.debug("Ejecutando: %s", " ".join(command))
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False
        )
    except subprocess.TimeoutExpired as e:
        raise ProviderError(f"Timeout ejecutando: {' '.join(command)}") from e
    except FileNotFoundError as e:
        raise ProviderError(f"Comando no encontrado: {command[0]}") from e
    return result.returncode, result.stdout, result.stderr


class LocalHost:
    """Operaciones de cuentas y ownership sobre el host local (o una raíz alternativa)."""

    def user_exists(self, name: str, root: Path) -> bool:
        if _is_system_root(root):
            try:
                pwd.getpwnam(name)
                return True
            except KeyError:
                return False
        return name in _read_db(root / "etc" / "passwd").values()

    def create_user(self, spec: UserSpec, root: Path) -> None:
        command = [
            "useradd",
            "--shell", spec.shell,
            "--home-dir", spec.home,
            "--user-group",
            "--create-home" if spec.manage_home else "--no-create-home",
        ]
        if spec.is_system_account:
            command.append("--system")
        if not _is_system_root(root):
            command += ["--root", str(root)]
        command.append(spec.name)
        code, _, stderr = run_command(command)
        if code == _EXIT_USER_EXISTS:
            _logger.info("%s: el usuario ya existe", spec.name)
        elif code == _EXIT_CANT_UPDATE_PASSWD:
            raise PermissionDeniedError(f"useradd {spec.name}: {stderr.strip() or 'sin permisos'}")
        elif code != 0:
            raise ProviderError(f"useradd {spec.name} falló ({code}): {stderr.strip()}")

    def delete_user(self, name: str, root: Path) -> None:
        command = ["userdel"]
        if not _is_system_root(root):
            command += ["--root", str(root)]
        command.append(name)
        code, _, stderr = run_command(command)
        if code == _EXIT_USER_MISSING:
            _logger.info("%s: el usuario no existe", name)
        elif code == _EXIT_CANT_UPDATE_PASSWD:
            raise PermissionDeniedError(f"userdel {name}: {stderr.strip() or 'sin permisos'}")
        elif code != 0:
            raise ProviderError(f"userdel {name} falló ({code}): {stderr.strip()}")

    def owner_of(self, path: Path, root: Path) -> Tuple[str, str]:
        """(usuario, grupo) dueños de `path`; el id numérico si no tiene nombre."""
        st = path.stat()
        if _is_system_root(root):
            try:
                user = pwd.getpwuid(st.st_uid).pw_name
            except KeyError:
                user = str(st.st_uid)
            try:
                group = grp.getgrgid(st.st_gid).gr_name
            except KeyError:
                group = str(st.st_gid)
            return user, group
        users = _read_db(root / "etc" / "passwd")
        groups = _read_db(root / "etc" / "group")
        return users.get(st.st_uid, str(st.st_uid)), groups.get(st.st_gid, str(st.st_gid))

    def chown(self, path: Path, owner: Optional[str], group: Optional[str], root: Path) -> None:
        if owner is None and group is None:
            return
        if _is_system_root(root):
            try:
                shutil.chown(path, user=owner, group=group)
            except LookupError as e:
                raise ProviderError(f"chown {path}: {e}") from e
            except PermissionError as e:
                raise PermissionDeniedError(f"chown {path}: {e}") from e
            return
        uid = _lookup_id(root / "etc" / "passwd", owner) if owner else -1
        gid = _lookup_id(root / "etc" / "group", group) if group else -1
        try:
            os.chown(path, uid, gid)
        except PermissionError as e:
            raise PermissionDeniedError(f"chown {path}: {e}") from e


def _is_system_root(root: Path) -> bool:
    return Path(root) == Path("/")


def _read_db(path: Path) -> Dict[int, str]:
    """id → nombre de un archivo estilo /etc/passwd o /etc/group."""
    entries: Dict[int, str] = {}
    if not path.exists():
        return entries
    for line in path.read_text(errors="replace").splitlines():
        fields = line.split(":")
        if len(fields) >= 3 and fields[2].isdigit():
            entries[int(fields[2])] = fields[0]
    return entries


def _lookup_id(path: Path, name: str) -> int:
    for id_, entry in _read_db(path).items():
        if entry == name:
            return id_
    raise ProviderError(f"{name}: no existe en {path}")


def require_privilege(context, what: str) -> None:
    """Lanza PermissionDeniedError si el contexto no tiene privilegios de root."""
    if not context.privileged:
        raise PermissionDeniedError(f"Se requieren permisos de root para {what} en {context.host}")
