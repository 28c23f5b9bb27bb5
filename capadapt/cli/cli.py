"""capadapt CLI - exercise capability adapters from the command line.

Usage:
    capadapt demo                          - Native and foreign speakers side by side
    capadapt demo --runtime process -t 4   - Same, foreign duck in a child process, 4 threads
    capadapt check ducks.py python_duck    - Shape-check a foreign global
    capadapt shapes                        - List registered shapes
"""

import sys
import threading
from pathlib import Path

import click

from capadapt import __version__
from capadapt.adapter import CapabilityAdapter
from capadapt.config import Config, create_runtime, get_config
from capadapt.core.errors import AdapterError, UnexpectedForeignShape
from capadapt.core.logging import setup_logging
from capadapt.ducks import DUCK_SOURCE
from capadapt.registry import get_registry


def _runtime_config(runtime: str | None, restricted: bool) -> Config:
    config = Config()
    if runtime:
        config.runtime.kind = runtime
    if restricted:
        config.runtime.restricted = True
    return config


@click.group()
@click.version_option(version=__version__, prog_name="capadapt")
def cli():
    """capadapt - Uniform capability adapters over native and foreign backends.

    One speak() interface, implemented either by host objects or by objects
    living in an embedded foreign runtime behind a process-wide gate.
    """
    config = get_config()
    setup_logging(
        level=config.log.level,
        format_type=config.log.format,
        log_dir=config.log.log_dir,
        file_enabled=config.log.file_enabled,
        console_enabled=config.log.console_enabled,
    )


@cli.command()
@click.option("--runtime", type=click.Choice(["embedded", "process"]), default=None,
              help="Foreign runtime to host the duck in")
@click.option("--threads", "-t", default=1, show_default=True, type=click.IntRange(min=1),
              help="Threads speaking concurrently")
@click.option("--restricted", is_flag=True, help="Compile foreign source with RestrictedPython")
def demo(runtime: str | None, threads: int, restricted: bool):
    """Make a native and a foreign speaker speak.

    Examples:
        capadapt demo
        capadapt demo --runtime process --threads 8
    """
    config = _runtime_config(runtime, restricted)
    issues = config.validate()
    if issues:
        for issue in issues:
            click.echo(f"Config error: {issue}", err=True)
        sys.exit(2)

    failures: list[AdapterError] = []

    with create_runtime(config) as foreign_runtime:
        foreign_runtime.load(DUCK_SOURCE, "<ducks>")
        native = CapabilityAdapter.from_native("Rust")
        duck = CapabilityAdapter.from_foreign_checked(
            foreign_runtime.construct("Duck"), owned=True
        )

        def worker():
            try:
                native.speak()
                duck.speak()
            except AdapterError as e:
                failures.append(e)

        workers = [threading.Thread(target=worker, name=f"speaker-{i}") for i in range(threads)]
        for thread in workers:
            thread.start()
        for thread in workers:
            thread.join()

        duck.close()
        native.close()

    if failures:
        for error in failures:
            click.echo(str(error), err=True)
        sys.exit(1)


@cli.command()
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("object_name")
@click.option("--shape", default="Duck", show_default=True, help="Registered shape to check against")
@click.option("--runtime", type=click.Choice(["embedded", "process"]), default=None)
@click.option("--restricted", is_flag=True, help="Compile foreign source with RestrictedPython")
@click.option("--speak", "do_speak", is_flag=True, help="Invoke speak() after a successful check")
def check(source_file: Path, object_name: str, shape: str, runtime: str | None,
          restricted: bool, do_speak: bool):
    """Check a foreign global against a registered shape.

    Loads SOURCE_FILE into a foreign runtime and shape-checks the global
    OBJECT_NAME. Exits 1 when the object does not match.
    """
    config = _runtime_config(runtime, restricted)

    try:
        with create_runtime(config) as foreign_runtime:
            foreign_runtime.load(source_file.read_text(encoding="utf-8"), str(source_file))
            ref = foreign_runtime.lookup(object_name)

            try:
                adapter = CapabilityAdapter.from_foreign_checked(ref, shape=shape, owned=True)
            except UnexpectedForeignShape as e:
                click.echo(f"{object_name}: does not match {shape}")
                if e.missing_methods:
                    click.echo(f"  missing: {', '.join(e.missing_methods)}")
                sys.exit(1)

            click.echo(f"{object_name}: matches {shape}")
            with adapter:
                click.echo(f"  {adapter.describe().to_display_string()}")
                if do_speak:
                    adapter.speak()
    except AdapterError as e:
        click.echo(str(e), err=True)
        sys.exit(1)


@cli.command()
def shapes():
    """List registered foreign shapes."""
    registry = get_registry()
    for name in registry.list_shapes():
        shape = registry.get(name)
        methods = ", ".join(shape.methods)
        click.echo(f"{shape.name}: instance of {shape.type_name} with {methods}")
