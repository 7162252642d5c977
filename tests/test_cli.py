import json

from typer.testing import CliRunner

from faro import __version__
from faro.cli.app import app


runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_recipes_lists_bundled():
    result = runner.invoke(app, ["recipes"])
    assert result.exit_code == 0
    assert "bastion" in result.output


def test_plan_inline_does_not_touch_host(tmp_path):
    result = runner.invoke(app, ["plan", "bastion", "--root", str(tmp_path), "--inline"])
    assert result.exit_code == 0, result.output
    assert "Plan:" in result.output
    assert "Crear directory[/opt/bastion/bin]" in result.output
    assert "Crear file[/opt/bastion/bin/bastion]" in result.output
    assert list(tmp_path.iterdir()) == []


def test_plan_json_with_assets(tmp_path, assets_dir):
    root = tmp_path / "host"
    root.mkdir()
    result = runner.invoke(app, ["plan", "bastion", "--root", str(root), "--assets", str(assets_dir), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["why_run"] is True
    assert data["summary"] == {"unchanged": 0, "changed": 5, "failed": 0}
    assert data["notifications"][0]["fired"] is False


def test_plan_missing_asset_fails(tmp_path):
    empty = tmp_path / "assets"
    empty.mkdir()
    result = runner.invoke(app, ["plan", "bastion", "--root", str(tmp_path), "--assets", str(empty)])
    assert result.exit_code == 1
    assert "AssetFetchError" in result.output


def test_unknown_recipe_exits_2():
    result = runner.invoke(app, ["plan", "no-such-recipe"])
    assert result.exit_code == 2
    assert "Receta no encontrada" in result.output


def test_inline_and_asset_source_are_exclusive(tmp_path):
    result = runner.invoke(app, ["plan", "bastion", "--root", str(tmp_path), "--inline", "--asset-source", "bastion"])
    assert result.exit_code == 2
