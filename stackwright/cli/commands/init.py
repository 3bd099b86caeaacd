"""Initialize command for creating new stackwright projects"""

from pathlib import Path

import click

from ..utils.output import console, print_error
from ...api.exceptions import StackwrightError
from ...build.scaffold import render_project
from ...constants import EMOJI_SUCCESS, EMOJI_WARNING, PROJECT_CONFIG_FILE, Role


@click.command()
@click.argument('path', required=False, default='.')
@click.option('--name', '-n', help='Project name, defaults to the directory name')
@click.option('--role', type=click.Choice([r.value for r in Role]), default=Role.ENDPOINT.value,
              help='Role of the sample function')
@click.option('--force', '-f', is_flag=True, help='Overwrite files that already exist')
@click.pass_context
def init(ctx, path, name, role, force):
    """Initialize a new stackwright project

    Writes stackwright.yaml, a pyproject.toml and a package with one
    sample function. Existing files are left alone unless --force is
    given.

    Examples:

        stackwright init

        stackwright init ./shop --name shop --role worker
    """
    project_path = Path(path).resolve()
    if (project_path / PROJECT_CONFIG_FILE).exists() and not force:
        console.print(f"{EMOJI_WARNING} Project already initialized in {project_path}")
        ctx.exit(1)

    name = name or project_path.name
    try:
        files = render_project(name, Role(role))
    except StackwrightError as e:
        print_error(e)
        ctx.exit(1)

    written = []
    for relative, content in files.items():
        target = project_path / relative
        if target.exists() and not force:
            console.print(f"[dim]Keeping existing {relative}[/dim]")
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        written.append(relative)

    console.print(f"{EMOJI_SUCCESS} Initialized project [bold]{name}[/bold] in {project_path}")
    for relative in written:
        console.print(f"  {relative}")

    console.print("\nNext steps:")
    console.print("1. stackwright functions")
    console.print("2. stackwright invoke <function>")
    console.print("3. stackwright deploy")
