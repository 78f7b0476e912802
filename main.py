#!/usr/bin/env python3
"""
Style Alchemy
Command line entry point: transforms craftingStyles() declarations of a
project into utility-class tokens.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

import click

from config.config_reader import AlchemyConfig, ConfigurationError, load_config, write_default_config
from core.exclusion_filter import expand_exclusion_entry
from core.style_alchemist import FileReport, StyleAlchemist
from core.style_engine import UtilityClassEngine
from core.transform_cache import TransformCache
from utils.file_utils import discover_source_files, write_file_content
from utils.file_watcher import PollingWatcher

logger = logging.getLogger(__name__)

DEFAULT_OUT_DIR = '.alchemy'


class BuildSession:
    """One build or watch session: a single engine and transform cache for every file."""

    def __init__(self, root: Path, out_dir: Path, config: AlchemyConfig):
        self.root = root.resolve()
        self.out_dir = out_dir if out_dir.is_absolute() else self.root / out_dir
        self.config = config
        self.engine = UtilityClassEngine()
        self.cache = TransformCache()
        self.alchemist = StyleAlchemist(
            self.engine,
            self.cache,
            module_scoped=config.module,
            callee_name=config.callee,
            exclude=config.exclude,
            root_dir=self.root,
        )
        self.ignore = [expand_exclusion_entry(entry) for entry in config.exclude]
        try:
            # keep generated output out of discovery when it lives in the project
            self.ignore.append(self.out_dir.relative_to(self.root).as_posix() + '/**')
        except ValueError:
            pass

    def process(self, path: Path) -> Optional[FileReport]:
        try:
            report = self.alchemist.process_file(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot process {path}: {str(e)}")
            return None
        if report.excluded:
            return report
        try:
            # symlinks keep their place in the project tree
            target = self.out_dir / Path(path).relative_to(self.root)
        except ValueError:
            logger.error(f"Cannot place output for {path}: not under {self.root}")
            return None
        try:
            write_file_content(target, report.code)
        except OSError as e:
            logger.error(f"Cannot write {target}: {str(e)}")
            return None
        return report

    def discover(self) -> List[Path]:
        return discover_source_files(self.root, self.config.extensions, self.ignore)

    def build(self, jobs: int = 1) -> List[FileReport]:
        files = self.discover()
        if jobs > 1:
            with ThreadPoolExecutor(max_workers=jobs) as executor:
                reports = list(executor.map(self.process, files))
        else:
            reports = [self.process(path) for path in files]
        return [report for report in reports if report is not None]

    def summary(self, reports: List[FileReport]) -> str:
        processed = [r for r in reports if not r.excluded]
        call_sites = sum(r.call_sites for r in processed)
        transformed = sum(r.transformed for r in processed)
        reused = sum(r.reused for r in processed)
        return (f"{len(processed)} file(s), {call_sites} style call(s): "
                f"{transformed} transformed, {reused} reused, "
                f"{len(self.engine.generated)} class token(s)")


def _session(root: str, out_dir: str) -> BuildSession:
    try:
        config = load_config(root)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    return BuildSession(Path(root), Path(out_dir), config)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Log every style call.')
def cli(verbose: bool) -> None:
    """Style Alchemy - turn craftingStyles() declarations into utility classes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


@cli.command()
@click.option('--root', default='.', type=click.Path(file_okay=False), help='Project root.')
@click.option('--force', is_flag=True, help='Overwrite an existing configuration.')
def init(root: str, force: bool) -> None:
    """Write a default alchemy.json."""
    try:
        path = write_default_config(root, force=force)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    click.echo(f"Configuration written to {path}")


@cli.command()
@click.option('--root', default='.', type=click.Path(exists=True, file_okay=False), help='Project root.')
@click.option('--out-dir', default=DEFAULT_OUT_DIR, help='Where transformed sources are written.')
@click.option('--jobs', '-j', default=1, type=click.IntRange(min=1), help='Files processed in parallel.')
def build(root: str, out_dir: str, jobs: int) -> None:
    """Transform every source file of the project once."""
    session = _session(root, out_dir)
    click.echo("Style Alchemy build started")
    reports = session.build(jobs)
    click.echo(f"Build finished: {session.summary(reports)}")


@cli.command()
@click.option('--root', default='.', type=click.Path(exists=True, file_okay=False), help='Project root.')
@click.option('--out-dir', default=DEFAULT_OUT_DIR, help='Where transformed sources are written.')
@click.option('--interval', default=0.5, type=float, help='Seconds between polls.')
def dev(root: str, out_dir: str, interval: float) -> None:
    """Build, then re-transform files as they change."""
    session = _session(root, out_dir)
    reports = session.build()
    click.echo(f"Initial build: {session.summary(reports)}")

    watcher = PollingWatcher(session.root, session.config.extensions, session.ignore, interval)
    click.echo(f"Watching {session.root} (Ctrl-C to stop)")
    try:
        watcher.watch(session.process)
    except KeyboardInterrupt:
        click.echo("Stopped watching")


if __name__ == "__main__":
    cli()
