from concurrent.futures import ThreadPoolExecutor
from typing import Annotated, Iterable, Optional, TypedDict

import typer
from anystore.cli import ErrorHandler
from anystore.io import smart_open
from anystore.logging import configure_logging
from anystore.model import BaseModel
from anystore.util import dump_json_model
from rich.console import Console

from gitpool import __version__
from gitpool.iterator import RepositoryIterator
from gitpool.model import RepositoryStats, SourceInfo
from gitpool.pool import RepositoryPool
from gitpool.settings import Settings

settings = Settings()
cli = typer.Typer(
    no_args_is_help=True,
    pretty_exceptions_enable=settings.debug,
    name="gitpool",
)
console = Console(stderr=True)


class State(TypedDict):
    pool: RepositoryPool | None


STATE: State = {"pool": None}


def write_objs(objs: Iterable[BaseModel], out: str) -> None:
    with smart_open(out, "wb") as o:
        o.writelines(dump_json_model(obj, newline=True) for obj in objs)


class Pool(ErrorHandler):
    def __enter__(self) -> RepositoryPool:
        super().__enter__()
        if STATE["pool"] is None:
            STATE["pool"] = RepositoryPool(Settings())
        return STATE["pool"]


def count_commits(iterator: RepositoryIterator) -> list[RepositoryStats]:
    """Consume positions from the (shared) iterator until it is exhausted"""
    results: list[RepositoryStats] = []
    pool = iterator.pool
    for result in iterator.results():
        info = SourceInfo.from_source(pool.get_source(result.id))
        if result.repository is None:
            stats = RepositoryStats(
                position=result.position, error=str(result.error), **info.model_dump()
            )
        else:
            with result.repository as repo:
                commits = sum(1 for _ in repo.commit_objects())
            stats = RepositoryStats(
                position=result.position, commits=commits, **info.model_dump()
            )
        results.append(stats)
    return results


@cli.callback(invoke_without_command=True)
def cli_gitpool(
    version: Annotated[Optional[bool], typer.Option(..., help="Show version")] = False,
    settings: Annotated[
        Optional[bool], typer.Option(..., help="Show current settings")
    ] = False,
    plain: Annotated[
        Optional[list[str]],
        typer.Option("-p", "--plain", help="Plain repository directory"),
    ] = None,
    archive: Annotated[
        Optional[list[str]],
        typer.Option("-a", "--archive", help="Repository archive file"),
    ] = None,
    discover: Annotated[
        Optional[list[str]],
        typer.Option(help="Register all repositories found below this directory"),
    ] = None,
):
    if version:
        console.print(__version__)
        raise typer.Exit()
    settings_ = Settings()
    configure_logging(level=settings_.log_level)
    STATE["pool"] = RepositoryPool(settings_)
    with Pool() as pool:
        for path in plain or []:
            pool.register_plain(path)
        for path in archive or []:
            pool.register_archive(path)
        for root in discover or []:
            pool.discover(root)
    if settings:
        console.print(settings_)
        console.print(STATE)
        raise typer.Exit()


@cli.command("ls")
def cli_ls(out_uri: Annotated[str, typer.Option("-o")] = "-"):
    """
    List registered repositories in registration order
    """
    with Pool() as pool:
        write_objs((SourceInfo.from_source(s) for s in pool.sources()), out_uri)


@cli.command("commits")
def cli_commits(
    out_uri: Annotated[str, typer.Option("-o")] = "-",
    workers: Annotated[
        int, typer.Option(help="Number of threads consuming the pool")
    ] = 1,
):
    """
    Count commit objects for each registered repository. Repositories that
    fail to open are reported with their error.
    """
    with Pool() as pool:
        iterator = pool.new_iterator()
        workers = max(1, workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(count_commits, iterator) for _ in range(workers)]
            results = [s for f in futures for s in f.result()]
        iterator.close()
        write_objs(sorted(results, key=lambda s: s.position), out_uri)
