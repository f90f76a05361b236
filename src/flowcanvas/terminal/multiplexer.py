"""Terminal multiplexer drivers (tmux, iTerm2).

Each driver wraps the handful of external commands the pane lifecycle needs.
Command failures are swallowed and reported as "nothing happened": a failed
liveness query means the pane is gone, a failed kill means it already was.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from enum import Enum

logger = logging.getLogger("flowcanvas.terminal")


class MultiplexerKind(str, Enum):
    TMUX = "tmux"
    ITERM2 = "iterm2"
    NONE = "none"


class Multiplexer(ABC):
    """Primitives for managing one hosted pane."""

    kind: MultiplexerKind = MultiplexerKind.NONE

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this multiplexer can be driven from the current process."""

    @abstractmethod
    def query_alive(self, pane_id: str) -> bool: ...

    @abstractmethod
    def create_split(self, command: str) -> str | None:
        """Open a split running ``command``; return its identifier."""

    @abstractmethod
    def send_keys(self, pane_id: str, text: str) -> None:
        """Type ``text`` into the pane and press Enter."""

    @abstractmethod
    def interrupt(self, pane_id: str) -> None:
        """Send Ctrl-C to the pane."""

    @abstractmethod
    def destroy(self, pane_id: str) -> None: ...


def _run(args: list[str]) -> str | None:
    """Run an external command; stdout on success, None on any failure."""
    try:
        result = subprocess.run(args, capture_output=True, text=True, check=True)
    except (subprocess.CalledProcessError, OSError) as e:
        logger.debug("Command %s failed: %s", args[0], e)
        return None
    return result.stdout.strip()


class TmuxMultiplexer(Multiplexer):
    """tmux driver; pane ids look like ``%12``."""

    kind = MultiplexerKind.TMUX

    def __init__(self, binary: str = "tmux", split_size: str = "40%") -> None:
        self.binary = binary
        self.split_size = split_size

    def _tmux(self, *args: str) -> str | None:
        return _run([self.binary, *args])

    def is_available(self) -> bool:
        return bool(os.environ.get("TMUX")) and shutil.which(self.binary) is not None

    def query_alive(self, pane_id: str) -> bool:
        output = self._tmux("display-message", "-t", pane_id, "-p", "#{pane_id}")
        return bool(output)

    def create_split(self, command: str) -> str | None:
        output = self._tmux(
            "split-window", "-h", "-l", self.split_size, "-P", "-F", "#{pane_id}", command
        )
        return output or None

    def send_keys(self, pane_id: str, text: str) -> None:
        self._tmux("send-keys", "-t", pane_id, text, "Enter")

    def interrupt(self, pane_id: str) -> None:
        self._tmux("send-keys", "-t", pane_id, "C-c")

    def destroy(self, pane_id: str) -> None:
        self._tmux("kill-pane", "-t", pane_id)


def _applescript_string(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class ITerm2Multiplexer(Multiplexer):
    """iTerm2 driver via AppleScript; ids are session unique ids."""

    kind = MultiplexerKind.ITERM2

    _FIND_SESSION = """tell application "iTerm2"
  repeat with w in windows
    repeat with t in tabs of w
      repeat with s in sessions of t
        if (unique id of s) is {pane_id} then
          {action}
        end if
      end repeat
    end repeat
  end repeat
  return "missing"
end tell"""

    def _osascript(self, script: str) -> str | None:
        return _run(["osascript", "-e", script])

    def _with_session(self, pane_id: str, action: str) -> str | None:
        script = self._FIND_SESSION.format(
            pane_id=_applescript_string(pane_id), action=action
        )
        return self._osascript(script)

    def is_available(self) -> bool:
        return (
            os.environ.get("TERM_PROGRAM") == "iTerm.app"
            and shutil.which("osascript") is not None
        )

    def query_alive(self, pane_id: str) -> bool:
        return self._with_session(pane_id, 'return "alive"') == "alive"

    def create_split(self, command: str) -> str | None:
        script = f"""tell application "iTerm2"
  tell current session of current window
    set newSession to (split vertically with default profile)
  end tell
  tell newSession
    write text {_applescript_string(command)}
    return unique id
  end tell
end tell"""
        return self._osascript(script) or None

    def send_keys(self, pane_id: str, text: str) -> None:
        self._with_session(
            pane_id, f'tell s to write text {_applescript_string(text)}\n          return "ok"'
        )

    def interrupt(self, pane_id: str) -> None:
        self._with_session(
            pane_id, 'tell s to write text (ASCII character 3) newline NO\n          return "ok"'
        )

    def destroy(self, pane_id: str) -> None:
        self._with_session(pane_id, 'close s\n          return "ok"')


def detect_multiplexer(
    tmux_binary: str = "tmux", split_size: str = "40%"
) -> Multiplexer | None:
    """First usable multiplexer: tmux, then iTerm2; None when neither works."""
    candidates: list[Multiplexer] = [
        TmuxMultiplexer(tmux_binary, split_size),
        ITerm2Multiplexer(),
    ]
    for candidate in candidates:
        if candidate.is_available():
            logger.debug("Detected %s", candidate.kind.value)
            return candidate
    return None
