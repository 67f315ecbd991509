from __future__ import annotations

import io
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

# None means directory, str is a symlink target, bytes are file contents
type Entry = bytes | str | None


def make_tree(root: Path, entries: Mapping[str, Entry]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for name, entry in entries.items():
        p = root / name
        p.parent.mkdir(parents=True, exist_ok=True)
        if entry is None:
            p.mkdir(exist_ok=True)
        elif isinstance(entry, str):
            os.symlink(entry, p)
        else:
            p.write_bytes(entry)
    return root


@dataclass
class Outputs:
    stdout: bytes
    stderr: bytes
    exit_code: int


def diff(old: Path, new: Path, **kwargs) -> Outputs:
    from treecmp.core.processor import Config, run_diff

    stdout = io.BytesIO()
    stderr = io.BytesIO()
    tty = kwargs.pop('tty', False)
    code = run_diff(
        Config(old_dir=old, new_dir=new, **kwargs),
        bin_name='nomnom',
        stdout=stdout,
        stderr=stderr,
        stdout_is_tty=tty,
        stderr_is_tty=tty,
    )
    return Outputs(stdout=stdout.getvalue(), stderr=stderr.getvalue(), exit_code=code)


def fail_listing(monkeypatch, failing: Path, exc: OSError) -> None:
    """
    Makes listing of a specific directory fail. Permissions don't help much when tests run as root
    """
    import treecmp.core.walk as walk

    real_scandir = os.scandir

    def scandir(path):
        if Path(path) == failing:
            raise exc
        return real_scandir(path)

    monkeypatch.setattr(walk.os, 'scandir', scandir)
