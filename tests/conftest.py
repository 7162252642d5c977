from pathlib import Path

import pytest

from faro.core.engine import ConvergenceEngine
from faro.core.errors import ProviderError
from faro.core.recipe import find_recipe, load_recipe, resolve_options
from faro.core.runtime import RunContext
from faro.core.runtime.state import StateDiff
from faro.providers import DirectoryAssetStore, default_providers
from faro.providers.host import LocalHost


BASTION_BINARY = b"\x7fELF-bastion-v1"


class FakeHost(LocalHost):
    """Cuentas y ownership en memoria; el filesystem es el real (bajo tmp_path)."""

    def __init__(self):
        self.users = {}
        self.owners = {}

    def user_exists(self, name, root):
        return name in self.users

    def create_user(self, spec, root):
        self.users[spec.name] = spec

    def delete_user(self, name, root):
        self.users.pop(name, None)

    def owner_of(self, path, root):
        return self.owners.get(str(path), ("root", "root"))

    def chown(self, path, owner, group, root):
        for account in (owner, group):
            if account and account != "root" and account not in self.users:
                raise ProviderError(f"chown {path}: cuenta desconocida {account}")
        current = self.owner_of(path, root)
        self.owners[str(path)] = (owner or current[0], group or current[1])


class FakeSupervisor:
    """Registra llamadas en lugar de hablar con runit."""

    def __init__(self):
        self.registered = {}
        self.restarts = []

    def _desired(self, spec):
        return (spec.run_command, spec.user, spec.enable_default_logging)

    def check(self, spec, context):
        if self.registered.get(spec.name) == self._desired(spec):
            return []
        return [StateDiff(f"service[{spec.name}]", "registered", True, spec.name in self.registered)]

    def ensure_registered(self, spec, context):
        changed = self.registered.get(spec.name) != self._desired(spec)
        self.registered[spec.name] = self._desired(spec)
        return changed

    def is_registered(self, name, context):
        return name in self.registered

    def unregister(self, name, context):
        return self.registered.pop(name, None) is not None

    def restart(self, name, context):
        self.restarts.append(name)


@pytest.fixture()
def host():
    return FakeHost()


@pytest.fixture()
def supervisor():
    return FakeSupervisor()


@pytest.fixture()
def target(tmp_path) -> Path:
    root = tmp_path / "host"
    root.mkdir()
    return root


@pytest.fixture()
def context(target):
    return RunContext(host="bastion-test", privileged=True, root=target)


@pytest.fixture()
def assets_dir(tmp_path) -> Path:
    bundled = find_recipe("bastion").parent / "files"
    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "bastion").write_bytes(BASTION_BINARY)
    (assets / "demo_data.json").write_bytes((bundled / "demo_data.json").read_bytes())
    return assets


@pytest.fixture()
def providers(host, supervisor, assets_dir):
    return default_providers(host=host, assets=DirectoryAssetStore(assets_dir), supervisor=supervisor)


@pytest.fixture()
def engine(providers):
    return ConvergenceEngine(providers)


@pytest.fixture()
def bastion_recipe():
    return load_recipe(find_recipe("bastion"))


@pytest.fixture()
def bastion(bastion_recipe):
    return resolve_options(bastion_recipe)
