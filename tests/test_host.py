import os

import pytest

from faro.core.errors import PermissionDeniedError, ProviderError
from faro.core.recipe.models import UserSpec
from faro.providers.host import LocalHost


BASTION = UserSpec(name="bastion", shell="/bin/bash", home="/opt/bastion", system=True)


class _CommandRecorder:
    def __init__(self):
        self.commands = []
        self.returncode = 0
        self.stderr = ""

    def __call__(self, command, cwd=None, timeout=30):
        self.commands.append(command)
        return self.returncode, "", self.stderr


@pytest.fixture()
def commands(monkeypatch):
    recorder = _CommandRecorder()
    monkeypatch.setattr("faro.providers.host.run_command", recorder)
    return recorder


def test_useradd_under_alternate_root(commands, target):
    LocalHost().create_user(BASTION, target)
    assert commands.commands == [[
        "useradd",
        "--shell", "/bin/bash",
        "--home-dir", "/opt/bastion",
        "--user-group",
        "--no-create-home",
        "--system",
        "--root", str(target),
        "bastion",
    ]]


def test_useradd_on_system_root(commands):
    spec = UserSpec(name="deploy", home="/home/deploy", manage_home=True)
    LocalHost().create_user(spec, "/")
    command = commands.commands[0]
    assert "--create-home" in command
    assert "--system" not in command
    assert "--root" not in command


def test_useradd_existing_user_is_not_an_error(commands, target):
    commands.returncode = 9
    LocalHost().create_user(BASTION, target)


def test_useradd_without_permission(commands, target):
    commands.returncode = 1
    commands.stderr = "useradd: cannot lock /etc/passwd"
    with pytest.raises(PermissionDeniedError, match="cannot lock"):
        LocalHost().create_user(BASTION, target)


def test_useradd_other_failure(commands, target):
    commands.returncode = 3
    with pytest.raises(ProviderError) as excinfo:
        LocalHost().create_user(BASTION, target)
    assert not isinstance(excinfo.value, PermissionDeniedError)


def test_userdel(commands, target):
    LocalHost().delete_user("bastion", target)
    assert commands.commands == [["userdel", "--root", str(target), "bastion"]]
    commands.returncode = 6
    LocalHost().delete_user("bastion", target)
    commands.returncode = 1
    with pytest.raises(PermissionDeniedError):
        LocalHost().delete_user("bastion", target)


def test_accounts_read_from_alternate_root(target):
    etc = target / "etc"
    etc.mkdir()
    uid, gid = os.getuid(), os.getgid()
    (etc / "passwd").write_bytes(
        f"bastion:x:{uid}:{gid}::/opt/bastion:/bin/bash\n".encode() + b"\xff\xfebroken\n"
    )
    (etc / "group").write_text(f"bastion:x:{gid}:\n")
    host = LocalHost()
    assert host.user_exists("bastion", target)
    assert not host.user_exists("ghost", target)

    data = target / "data"
    data.write_text("x")
    assert host.owner_of(data, target) == ("bastion", "bastion")
    host.chown(data, "bastion", "bastion", target)
    with pytest.raises(ProviderError):
        host.chown(data, "ghost", None, target)
