"""Terminal UI utilities — spinner and log setup."""

from __future__ import annotations

import contextlib
import itertools
import logging
import sys
import threading

import click


@contextlib.contextmanager
def spinner(label: str, *, enabled: bool = True):
    """Show an inline spinner with *label* on stderr while the block runs.

    Drawn only when stderr is a terminal.
    """
    if not enabled or not sys.stderr.isatty():
        yield
        return

    frames = itertools.cycle(["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"])
    done = threading.Event()

    def _draw() -> None:
        while not done.is_set():
            sys.stderr.write(f"\r{next(frames)} {label}\033[K")
            sys.stderr.flush()
            done.wait(0.08)
        sys.stderr.write("\r\033[K")
        sys.stderr.flush()

    t = threading.Thread(target=_draw, daemon=True)
    t.start()
    try:
        yield
    finally:
        done.set()
        t.join()


class _EchoHandler(logging.Handler):
    """Emit through click so the current stderr is used at write time."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool) -> None:
    """Route ``snaprepo`` log records to stderr; DEBUG when verbose."""
    logger = logging.getLogger("snaprepo")
    if not any(isinstance(h, _EchoHandler) for h in logger.handlers):
        handler = _EchoHandler()
        handler.setFormatter(logging.Formatter("[snap-repo] %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
