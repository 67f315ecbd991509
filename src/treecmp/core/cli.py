from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

import click

from .processor import Config, ExitCode, When, run_diff

_WHEN = click.Choice([w.value for w in When])


@click.command(context_settings={'max_content_width': 120, 'show_default': True, 'help_option_names': ['-h', '--help']})
@click.argument('old', type=click.Path(path_type=Path))
@click.argument('new', type=click.Path(path_type=Path))
@click.option('-q', '--brief', is_flag=True, default=False, help='Report only when directories differ')
@click.option('-0', '--null', 'nul_terminated', is_flag=True, default=False, help='Print raw NUL-separated paths')
@click.option('--color', type=_WHEN, default=When.AUTO.value, metavar='WHEN', help='Print output in color')
@click.option('--progress', type=_WHEN, default=When.AUTO.value, metavar='WHEN', help='Print progress reports')
@click.option(
    '-b',
    '--block-size',
    type=click.IntRange(min=1),
    default=None,
    help='Read files in blocks of BLOCK_SIZE bytes (512 KiB by default)',
)
@click.version_option(package_name='treecmp', message='%(prog)s %(version)s')
@click.pass_context
def main(
    ctx: click.Context,
    *,
    old: Path,
    new: Path,
    brief: bool,
    nul_terminated: bool,
    color: str,
    progress: str,
    block_size: int | None,
) -> int:
    """
    Compares directories OLD and NEW file by file.

    \b
    Each difference is printed on its own line:
      - deleted   (only in OLD)
      + added     (only in NEW)
      ~ modified
      ! error     (details on stderr, marked with ^)

    \b
    Exit status:
      0 trees are the same, 1 trees differ,
      2 same but there were errors, 3 differ and there were errors,
      4 fatal error
    """
    config = Config(
        old_dir=old,
        new_dir=new,
        brief=brief,
        nul_terminated=nul_terminated,
        color=When(color),
        progress=When(progress),
        chunk_size=block_size,
    )
    stdout = sys.stdout.buffer
    stderr = sys.stderr.buffer
    return run_diff(
        config,
        bin_name=ctx.find_root().info_name or 'treecmp',
        stdout=stdout,
        stderr=stderr,
        stdout_is_tty=stdout.isatty(),
        stderr_is_tty=stderr.isatty(),
    )


def run(args: Sequence[str] | None = None, *, prog_name: str | None = None) -> int:
    """
    Same as the command, but returns the exit code instead of exiting. Bad usage is a fatal error, like any other
    """
    try:
        res = main.main(args=args, prog_name=prog_name, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return ExitCode.FATAL
    except click.Abort:
        click.echo('Aborted!', err=True)
        return ExitCode.FATAL
    # --help/--version end up here as 0
    return int(res)


def entrypoint() -> None:
    sys.exit(run())
