"""Interactive single-key command loop."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from typing import Callable, Iterator

from rom_builder.app.session import Session

KEYMAP: dict[str, str] = {
    "b": "build",
    "s": "save",
    "t": "test",
    "r": "run",
    "e": "edit",
    "p": "package",
}
EXIT_KEYS = frozenset({"q", "x", "\x1b", "\x03", "\x04"})
HELP_KEYS = frozenset({"h", "?"})

HELP_TEXT = """\
Commands:
  B  Build    apply patches and imports to the clean ROM and write the output ROM
  S  Save     export levels, map16, palette, title moves and global data from the output ROM
  T  Test     import the test level (if configured) and launch the emulator
  R  Run      Save, then Build, then Test
  E  Edit     open the output ROM in Lunar Magic
  P  Package  create a BPS patch of the output ROM
  H  Help     show this text
  Q  Quit"""


@contextmanager
def _raw_terminal() -> Iterator[None]:
    import termios  # noqa: PLC0415
    import tty  # noqa: PLC0415

    fd = sys.stdin.fileno()
    previous = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, previous)


def read_key() -> str:
    """Block until a single key is pressed and return it lower-cased."""

    if not sys.stdin.isatty():
        line = sys.stdin.readline()
        if not line:
            return "q"
        return (line.strip()[:1] or "\n").lower()

    if sys.platform == "win32":
        import msvcrt  # noqa: PLC0415

        return msvcrt.getwch().lower()

    with _raw_terminal():
        return sys.stdin.read(1).lower()


def run_shell(
    session: Session,
    *,
    read_key: Callable[[], str] = read_key,
    write: Callable[[str], None] = print,
) -> int:
    """Loop until an exit key; every command failure is reported and the loop continues."""

    write(HELP_TEXT)
    while True:
        write("")
        write("Waiting for a command (H for help)...")
        key = read_key()
        if key in EXIT_KEYS:
            return 0
        if key in HELP_KEYS:
            write(HELP_TEXT)
            continue
        command = KEYMAP.get(key)
        if command is None:
            if key.strip():
                write(f"Unknown command key {key!r}")
            continue

        try:
            results = session.run(command)
        except Exception:  # noqa: BLE001
            session.logger.exception("Unexpected error while running %s", command)
            write(f"{command}: FAILED (unexpected error, see log)")
            continue

        for result in results:
            write(result.summary())
        write(f"{command}: {'SUCCESS' if all(r.success for r in results) else 'FAILED'}")
