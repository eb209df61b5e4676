"""Fake porklock executable for exercising real subprocess launches.

The fake is a small POSIX shell script written to a state directory. It
behaves like porklock from the launcher's point of view: it writes to
stdout and stderr, optionally sleeps, and exits with a chosen status.
"""

import stat
from pathlib import Path
from typing import List

FAKE_PORKLOCK = """#!/bin/sh
# $1=-jar $2=<jar> $3=get|put
STATE_DIR="{state_dir}"
echo "$@" >> "$STATE_DIR/calls"
if ! mkdir "$STATE_DIR/lock-$3" 2>/dev/null; then
    echo "$3" >> "$STATE_DIR/overlaps"
fi
echo "porklock $3 stdout"
echo "porklock $3 stderr" >&2
sleep {sleep}
rmdir "$STATE_DIR/lock-$3" 2>/dev/null
exit {exit_code}
"""


class FakePorklock:
    """Executable stand-in for porklock that records its invocations.

    Each invocation appends its arguments to ``calls``. A run that starts
    while another run of the same action is still in progress appends the
    action to ``overlaps``.
    """

    def __init__(self, state_dir: Path, exit_code: int = 0, sleep: float = 0) -> None:
        self.state_dir = state_dir
        self.path = state_dir / "porklock"
        self.path.write_text(
            FAKE_PORKLOCK.format(state_dir=state_dir, sleep=sleep, exit_code=exit_code)
        )
        self.path.chmod(self.path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    def _lines(self, name: str) -> List[str]:
        path = self.state_dir / name
        if not path.exists():
            return []
        return path.read_text().splitlines()

    def calls(self) -> List[str]:
        return self._lines("calls")

    def overlaps(self) -> List[str]:
        return self._lines("overlaps")
