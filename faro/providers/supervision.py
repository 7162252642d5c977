"""
Supervisión de procesos con runit.

Registrar un servicio = generar /etc/sv/<nombre>/run (y log/run con svlogd si se pide
el logger por defecto) y enlazar /etc/service/<nombre>. runsvdir arranca y vigila el
proceso; faro nunca controla el proceso directamente salvo el "sv restart" notificado.
"""

import logging
import os
import shutil
import time
from pathlib import Path
from typing import List, Optional, Protocol

from faro.core.errors import SupervisionError
from faro.core.recipe.models import ServiceSpec
from faro.core.runtime.context import RunContext
from faro.core.runtime.state import StateDiff
from faro.providers.host import run_command

_logger = logging.getLogger(__name__)

_SCRIPT_MODE = 0o755
# runsvdir revisa /etc/service cada 5 segundos
_SUPERVISE_TIMEOUT = 7.0
_POLL_INTERVAL = 0.5


class Supervisor(Protocol):
    def check(self, spec: ServiceSpec, context: RunContext) -> List[StateDiff]:
        ...

    def ensure_registered(self, spec: ServiceSpec, context: RunContext) -> bool:
        ...

    def is_registered(self, name: str, context: RunContext) -> bool:
        ...

    def unregister(self, name: str, context: RunContext) -> bool:
        ...

    def restart(self, name: str, context: RunContext) -> None:
        ...


def run_script(spec: ServiceSpec) -> str:
    runner = f"chpst -u {spec.user} " if spec.user else ""
    return f"#!/bin/sh\nexec 2>&1\nexec {runner}{spec.run_command}\n"


def log_script(spec: ServiceSpec) -> str:
    return f"#!/bin/sh\nexec svlogd -tt /var/log/{spec.name}\n"


class RunitSupervisor:
    """Registro declarativo de servicios runit."""

    def __init__(
        self,
        sv_dir: str = "/etc/sv",
        service_dir: str = "/etc/service",
        log_dir: str = "/var/log",
        wait_timeout: float = _SUPERVISE_TIMEOUT,
    ):
        self.sv_dir = sv_dir
        self.service_dir = service_dir
        self.log_dir = log_dir
        self.wait_timeout = wait_timeout

    def _paths(self, name: str, context: RunContext):
        sv = context.resolve(f"{self.sv_dir}/{name}")
        link = context.resolve(f"{self.service_dir}/{name}")
        logs = context.resolve(f"{self.log_dir}/{name}")
        return sv, link, logs

    def check(self, spec: ServiceSpec, context: RunContext) -> List[StateDiff]:
        ref = f"service[{spec.name}]"
        sv, link, _ = self._paths(spec.name, context)
        diffs: List[StateDiff] = []
        current_run = _read(sv / "run")
        if current_run != run_script(spec).encode():
            diffs.append(StateDiff(ref, "run_script", "managed", "missing" if current_run is None else "differs"))
        has_logger = (sv / "log" / "run").exists()
        if spec.enable_default_logging:
            if _read(sv / "log" / "run") != log_script(spec).encode():
                diffs.append(StateDiff(ref, "logging", True, has_logger))
        elif has_logger:
            diffs.append(StateDiff(ref, "logging", False, True))
        if not link.is_symlink():
            diffs.append(StateDiff(ref, "registered", True, False))
        return diffs

    def ensure_registered(self, spec: ServiceSpec, context: RunContext) -> bool:
        diffs = self.check(spec, context)
        if not diffs:
            return False
        sv, link, logs = self._paths(spec.name, context)
        try:
            _write_script(sv / "run", run_script(spec))
            if spec.enable_default_logging:
                logs.mkdir(parents=True, exist_ok=True)
                _write_script(sv / "log" / "run", log_script(spec))
            elif (sv / "log").exists():
                shutil.rmtree(sv / "log")
            if not link.is_symlink():
                link.parent.mkdir(parents=True, exist_ok=True)
                link.symlink_to(Path(self.sv_dir) / spec.name)
        except PermissionError:
            raise
        except OSError as e:
            raise SupervisionError(f"No se pudo registrar {spec.name} en runit: {e}") from e
        _logger.info("Servicio %s registrado en runit (%s)", spec.name, ", ".join(d.field for d in diffs))
        return True

    def is_registered(self, name: str, context: RunContext) -> bool:
        sv, link, _ = self._paths(name, context)
        return link.is_symlink() or sv.exists()

    def unregister(self, name: str, context: RunContext) -> bool:
        if not self.is_registered(name, context):
            return False
        sv, link, _ = self._paths(name, context)
        try:
            if link.is_symlink():
                link.unlink()
            if sv.exists():
                shutil.rmtree(sv)
        except PermissionError:
            raise
        except OSError as e:
            raise SupervisionError(f"No se pudo eliminar {name} de runit: {e}") from e
        _logger.info("Servicio %s eliminado de runit", name)
        return True

    def is_supervised(self, name: str, context: RunContext) -> bool:
        """runsv crea supervise/ok cuando ya vigila el servicio."""
        sv, _, _ = self._paths(name, context)
        return (sv / "supervise" / "ok").exists()

    def wait_supervised(self, name: str, context: RunContext) -> bool:
        deadline = time.monotonic() + self.wait_timeout
        while not self.is_supervised(name, context):
            if time.monotonic() >= deadline:
                return False
            time.sleep(_POLL_INTERVAL)
        return True

    def restart(self, name: str, context: RunContext) -> None:
        # Recién enlazado: runsvdir lo arrancará con el binario actual
        if not self.wait_supervised(name, context):
            _logger.warning("%s: runsv aún no supervisa el servicio; se omite sv restart", name)
            return
        target = context.resolve(f"{self.service_dir}/{name}")
        code, _, stderr = run_command(["sv", "restart", str(target)])
        if code != 0:
            raise SupervisionError(f"sv restart {name} falló ({code}): {stderr.strip()}")


def _read(path: Path) -> Optional[bytes]:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def _write_script(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.chmod(path, _SCRIPT_MODE)
