import pytest

from faro.core.errors import ConfigError, ValidationError
from faro.core.recipe import RecipeConfig, find_recipe, list_recipes, load_recipe, resolve_options
from faro.core.recipe.models import DirectorySpec, FileSpec, ResourceKind


def test_bundled_bastion_recipe(bastion_recipe):
    assert bastion_recipe.name == "bastion"
    assert bastion_recipe.options == RecipeConfig(asset_source="bastion", recursive=True)
    assert [d.ref for d in bastion_recipe.resources] == [
        "user[bastion]",
        "directory[/opt/bastion]",
        "file[bastion]",
        "file[demo_data.json]",
        "service[bastion]",
    ]
    assert bastion_recipe.directory == find_recipe("bastion").parent


def test_options_are_resolved(bastion):
    directory = next(d for d in bastion if d.kind == ResourceKind.DIRECTORY).spec()
    binary = next(d for d in bastion if d.ref == "file[bastion]").spec()
    assert isinstance(directory, DirectorySpec) and directory.recursive is True
    assert isinstance(binary, FileSpec) and binary.asset == "bastion"


def test_plain_file_variant(bastion_recipe):
    declarations = resolve_options(bastion_recipe, RecipeConfig(asset_source=None, recursive=False))
    binary = next(d for d in declarations if d.ref == "file[bastion]").spec()
    directory = next(d for d in declarations if d.kind == ResourceKind.DIRECTORY).spec()
    assert binary.source is None
    assert directory.recursive is False
    # La receta original no cambia
    assert bastion_recipe.resources[2].attributes["asset"] == "$asset_source"


def test_unknown_option_reference(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text(
        "resources:\n"
        "  - kind: directory\n"
        "    identifier: /srv/x\n"
        "    attributes: {recursive: $nope}\n"
    )
    recipe = load_recipe(path)
    assert recipe.name == "broken"
    with pytest.raises(ValidationError, match="nope"):
        resolve_options(recipe)


def test_missing_recipe():
    with pytest.raises(ConfigError):
        find_recipe("does-not-exist")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("resources: [\n")
    with pytest.raises(ConfigError):
        load_recipe(path)


def test_invalid_structure(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("resources:\n  - kind: package\n    identifier: vim\n")
    with pytest.raises(ValidationError):
        load_recipe(path)


def test_recipes_path_takes_priority(tmp_path, monkeypatch):
    override = tmp_path / "recipes"
    (override / "bastion").mkdir(parents=True)
    (override / "bastion" / "recipe.yaml").write_text("name: bastion\nresources: []\n")
    (override / "extra.yaml").write_text("resources: []\n")
    monkeypatch.setenv("FARO_RECIPES_PATH", str(override))

    assert find_recipe("bastion") == override / "bastion" / "recipe.yaml"
    found = list_recipes()
    assert found["bastion"] == override / "bastion" / "recipe.yaml"
    assert found["extra"] == override / "extra.yaml"
