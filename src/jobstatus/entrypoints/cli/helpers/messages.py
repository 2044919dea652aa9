"""Terminal message helpers for the JOBSTATUS CLI.

Status lines go to stderr so stdout stays machine-readable (``get`` and
``query`` print JSON lines there). Glyphs fall back to ASCII on terminals that
cannot encode them.
"""

import click

#: kind -> (glyph, ASCII fallback, colour)
_STYLES = {
    "warn": ("⚠️", "[!]", "yellow"),
    "success": ("✅", "[OK]", "green"),
    "error": ("❌", "[X]", "red"),
}


def _supports_character(character: str) -> bool:
    """Return True if *character* can be encoded on stderr."""
    stream = click.get_text_stream("stderr")  # pragma: no mutate
    encoding = getattr(stream, "encoding", None) or "ascii"
    try:
        character.encode(encoding)
    except UnicodeEncodeError:
        return False
    return True


def glyph(kind: str) -> str:
    """Return the marker for ``kind`` ("warn", "success" or "error")."""
    emoji, fallback, _ = _STYLES[kind]
    return emoji if _supports_character(emoji) else fallback


def _emit(kind: str, msg: str) -> None:
    click.secho(f"{glyph(kind)}  {msg}", fg=_STYLES[kind][2], bold=True, err=True)


def warn(msg: str) -> None:
    """Emit a yellow warning line on stderr."""
    _emit("warn", msg)


def success(msg: str) -> None:
    """Emit a green success line on stderr, e.g. ``✅  Recorded job status``."""
    _emit("success", msg)


def error(msg: str) -> None:
    """Emit a red error line on stderr."""
    _emit("error", msg)
