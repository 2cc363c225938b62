#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

"""Text surfaces where reports are shown"""

import sys

from .types import Optional

# move cursor home, clear screen, clear scrollback
CLEAR_SCREEN = "\033[H\033[2J\033[3J"


class Display:
    """Plain text display. Each report is appended to the stream"""

    def __init__(self, stream=None):
        self._stream = stream

    @property
    def stream(self):
        # resolved late so that a replaced sys.stdout is honored
        return sys.stdout if self._stream is None else self._stream

    def repaint(self):
        pass

    def write(self, text: str):
        self.stream.write(text + "\n")
        self.stream.flush()


class Terminal(Display):
    """ANSI terminal display. Each repaint clears the screen"""

    def __init__(self, stream=None, clear: Optional[str] = None):
        super().__init__(stream)
        self.clear = CLEAR_SCREEN if clear is None else clear

    def repaint(self):
        self.stream.write(self.clear)
        self.stream.flush()
