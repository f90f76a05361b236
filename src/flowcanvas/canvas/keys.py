"""Decode raw terminal input into logical key events."""

from __future__ import annotations

from flowcanvas.canvas.session import KeyEvent

ESC = "\x1b"

# How long a trailing Esc waits for the rest of an escape sequence.
ESC_TIMEOUT = 0.05

ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1b[Z": "tab",
}

CONTROL_KEYS = {
    "\r": "confirm",
    "\n": "confirm",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x03": "cancel",
}


def _is_final(ch: str) -> bool:
    return "\x40" <= ch <= "\x7e"


class KeyDecoder:
    """Incremental decoder that survives escape sequences split across reads.

    ``feed`` holds back a trailing Esc or an unfinished CSI/SS3 sequence in
    ``pending``. The caller calls ``flush`` once no more input follows, which
    turns a held lone Esc into ``cancel``.
    """

    def __init__(self) -> None:
        self.pending = ""

    def feed(self, data: str) -> list[KeyEvent]:
        data = self.pending + data
        self.pending = ""
        events: list[KeyEvent] = []
        i = 0
        while i < len(data):
            ch = data[i]
            if ch != ESC:
                if ch in CONTROL_KEYS:
                    events.append(KeyEvent(CONTROL_KEYS[ch]))
                elif ch.isprintable():
                    events.append(KeyEvent.char(ch))
                i += 1
                continue

            if i + 1 == len(data):
                self.pending = data[i:]
                break
            if data[i + 1] not in ("[", "O"):
                events.append(KeyEvent("cancel"))
                i += 1
                continue

            j = i + 2
            while j < len(data) and not _is_final(data[j]):
                j += 1
            if j == len(data):
                self.pending = data[i:]
                break
            seq = data[i:j + 1]
            if seq in ESCAPE_SEQUENCES:
                events.append(KeyEvent(ESCAPE_SEQUENCES[seq]))
            i = j + 1
        return events

    def flush(self) -> list[KeyEvent]:
        """Resolve held input: a lone Esc is ``cancel``, a partial sequence is dropped."""
        pending, self.pending = self.pending, ""
        if pending == ESC:
            return [KeyEvent("cancel")]
        return []


def decode_keys(data: str) -> list[KeyEvent]:
    """Decode one complete chunk of terminal input into key events.

    A lone Esc is ``cancel``; unrecognised escape sequences and other control
    characters are dropped.
    """
    decoder = KeyDecoder()
    return decoder.feed(data) + decoder.flush()
