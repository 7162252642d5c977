"""
Aplicación CLI de faro.

Solo compone comandos; la lógica vive en core y providers.
    faro converge <receta>   aplica la receta (exit 0 si todo converge, 1 si algún recurso falla)
    faro plan <receta>       why-run: muestra qué cambiaría sin tocar el host
    faro recipes             lista recetas disponibles
"""

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from faro import __version__
from faro.core.engine import ConvergenceEngine
from faro.core.errors import ConfigError, ValidationError
from faro.core.recipe import (
    RecipeConfig,
    find_recipe,
    list_recipes,
    load_recipe,
    merge_diffs,
    plan_from_diffs,
    resolve_options,
)
from faro.core.report import RunReport
from faro.core.runtime import RunContext, assets_dir, target_root
from faro.providers import default_providers

# Cargar .env del directorio de trabajo
_env = Path.cwd() / ".env"
if _env.exists():
    load_dotenv(_env)

EXIT_FAILED = 1
EXIT_INVALID = 2

app = typer.Typer(
    name="faro",
    help="faro - Convergencia declarativa de hosts (usuarios, directorios, archivos, servicios)",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def configure_logging(verbose: bool = False) -> None:
    """Logging a stderr con RichHandler; FARO_LOG_LEVEL tiene prioridad sobre --verbose."""
    level = os.environ.get("FARO_LOG_LEVEL", "").strip().upper() or ("DEBUG" if verbose else "WARNING")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Muestra el detalle de cada recurso"),
):
    configure_logging(verbose)


def _recipe_config(recipe, recursive: Optional[bool], asset_source: Optional[str], inline: bool) -> RecipeConfig:
    """Opciones de la receta con los overrides de la CLI aplicados."""
    if inline and asset_source:
        console.print("[red]✘ --inline y --asset-source son excluyentes[/red]")
        raise typer.Exit(code=EXIT_INVALID)
    update = {}
    if recursive is not None:
        update["recursive"] = recursive
    if asset_source:
        update["asset_source"] = asset_source
    if inline:
        update["asset_source"] = None
    return recipe.options.model_copy(update=update)


def _run(
    name: str,
    why_run: bool,
    root: Optional[Path],
    assets: Optional[Path],
    recursive: Optional[bool],
    asset_source: Optional[str],
    inline: bool,
) -> RunReport:
    try:
        recipe = load_recipe(find_recipe(name))
        config = _recipe_config(recipe, recursive, asset_source, inline)
        declarations = resolve_options(recipe, config)
        context = RunContext.detect(root=target_root(root), why_run=why_run)
        engine = ConvergenceEngine(default_providers(assets_dir=assets_dir(recipe.directory, assets)))
        return engine.run(declarations, context, recipe=recipe.name)
    except (ConfigError, ValidationError) as e:
        console.print(f"[red]✘ {escape(f'{e.kind}: {e}')}[/red]")
        raise typer.Exit(code=EXIT_INVALID)


def _output(report: RunReport, as_json: bool) -> None:
    if as_json:
        console.print_json(data=report.to_dict())
    else:
        report.render(console)


@app.command()
def converge(
    recipe: str = typer.Argument(..., help="Nombre de la receta (ej: bastion)"),
    root: Optional[Path] = typer.Option(None, "--root", help="Raíz del host objetivo (por defecto: / o FARO_TARGET_ROOT)"),
    assets: Optional[Path] = typer.Option(None, "--assets", help="Directorio de assets (por defecto: FARO_ASSETS_DIR o <receta>/files)"),
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive", help="Crear ancestros faltantes de los directorios"),
    asset_source: Optional[str] = typer.Option(None, "--asset-source", help="Asset del binario gestionado"),
    inline: bool = typer.Option(False, "--inline", help="Gestionar el binario como archivo plano, sin asset"),
    as_json: bool = typer.Option(False, "--json", help="Reporte en JSON"),
):
    """
    Converge el host al estado declarado por la receta

    Ejemplo: sudo faro converge bastion --assets ./build
    """
    report = _run(recipe, False, root, assets, recursive, asset_source, inline)
    _output(report, as_json)
    if report.failed:
        if not as_json:
            console.print("\n[red]✘ Convergencia con errores[/red]")
            for record in report.failed_records:
                console.print(f"  [red]- {escape(f'{record.resource_id}: {record.error_kind}: {record.error_message}')}[/red]")
        raise typer.Exit(code=EXIT_FAILED)
    if not as_json:
        console.print("\n[bold green]✅ Host convergido[/bold green]")


@app.command()
def plan(
    recipe: str = typer.Argument(..., help="Nombre de la receta (ej: bastion)"),
    root: Optional[Path] = typer.Option(None, "--root", help="Raíz del host objetivo"),
    assets: Optional[Path] = typer.Option(None, "--assets", help="Directorio de assets"),
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive", help="Crear ancestros faltantes"),
    asset_source: Optional[str] = typer.Option(None, "--asset-source", help="Asset del binario gestionado"),
    inline: bool = typer.Option(False, "--inline", help="Gestionar el binario como archivo plano"),
    as_json: bool = typer.Option(False, "--json", help="Reporte en JSON"),
):
    """
    Muestra qué cambiaría la receta sin modificar el host (why-run)

    Ejemplo: faro plan bastion --inline
    """
    report = _run(recipe, True, root, assets, recursive, asset_source, inline)
    _output(report, as_json)
    if not as_json:
        actions = plan_from_diffs(merge_diffs([r.diffs for r in report.records]))
        if actions:
            console.print("\n[bold]Plan:[/bold]")
            for action in actions:
                console.print(f"  • {escape(action)}")
        else:
            console.print("\n[green]✅ Sin cambios pendientes. Estado deseado y real coinciden.[/green]")
    if report.failed:
        raise typer.Exit(code=EXIT_FAILED)


@app.command()
def recipes():
    """Lista las recetas disponibles"""
    found = list_recipes()
    if not found:
        console.print("[yellow]⚠️ No se encontraron recetas[/yellow]")
        return
    table = Table(title="Recetas disponibles", show_header=True, header_style="bold cyan")
    table.add_column("Receta", style="cyan")
    table.add_column("Recursos", style="green")
    table.add_column("Archivo", style="dim")
    for name, path in found.items():
        try:
            count = str(len(load_recipe(path).resources))
        except (ConfigError, ValidationError) as e:
            count = f"[red]inválida: {e.kind}[/red]"
        table.add_row(escape(name), count, escape(str(path)))
    console.print(table)


@app.command()
def version():
    """Muestra la versión de faro"""
    console.print(Panel.fit(
        "[bold cyan]faro[/bold cyan]\n"
        "[dim]Convergencia declarativa de hosts[/dim]\n\n"
        f"[bold]Versión:[/bold] {__version__}\n"
        f"[bold]Raíz objetivo:[/bold] {target_root()}",
        border_style="cyan"
    ))


def main():
    app()
