"""
rawstacks.py — Raw stack dumps → call tree

Parses `perf script` style output where every sample is one block:

    myapp 111/222 [0] 5.123456: cpu-clock:
    \t  4005d0 foo+0x10 (/usr/bin/myapp)
    \t  4006a2 main+0x22 (/usr/bin/myapp)
    <blank line>

Frames are listed innermost first; each block is folded into a path
"label;outermost;...;innermost" and added to a Profile with value 1.
In live mode one Profile is kept per whole-second timestamp.
"""

import enum
import re

from calltree import Node


# ── Line grammar ───────────────────────────────────────────────

HEADER_RE = re.compile(r'^(\S+\s*?\S*?)\s+(\d+)/(\d+)\s+\[(\d+)\]\s+(\d+)\.(\d+)')
FRAME_RE = re.compile(r'^\s*(\w+)\s*(.+) \((\S*)\)')
BLANK_RE = re.compile(r'^\s*$')
COMMENT_RE = re.compile(r'^#')

STRIP_CHARS = str.maketrans({';': ':', '<': None, '>': None,
                             "'": None, '"': None})


def sanitize_frame(func, module=None):
    """Clean one symbol token; None for process-name pseudo frames."""
    if func.startswith('('):
        return None
    func = func.translate(STRIP_CHARS)
    idx = func.find('(')
    if idx != -1:
        func = func[:idx]
    return func


# ── Profiles ───────────────────────────────────────────────────

class Profile:
    __slots__ = ('root', 'stack', 'label')

    def __init__(self):
        self.root = Node('root')
        self.stack = None
        self.label = None

    def open_stack(self, label):
        self.stack = []
        self.label = label

    def add_frame(self, func, module=None):
        func = sanitize_frame(func, module)
        if func is not None:
            self.stack.insert(0, func)

    def close_stack(self):
        self.stack.insert(0, self.label)
        self.root.add(self.stack, 1, 1, delta=False)
        self.discard_stack()

    def discard_stack(self):
        self.stack = None
        self.label = None

    def serialize(self, timestep=None):
        return self.root.serialize(timestep)


class Recording:
    """Profiles keyed by sample timestamp, for live flame graphs."""

    def __init__(self):
        self.profiles = {}

    def get_profile(self, timestamp):
        profile = self.profiles.get(timestamp)
        if profile is None:
            profile = Profile()
            self.profiles[timestamp] = profile
        return profile

    def serialize(self, timestep=None):
        return {key: profile.serialize(timestep)
                for key, profile in self.profiles.items()}


# ── State machine ──────────────────────────────────────────────

class State(enum.Enum):
    AWAITING_BLOCK = 'awaiting-block'
    IN_BLOCK = 'in-block'


class RawParser:
    """Feeds raw lines one at a time; see module docstring for the format.

    Diagnostics for lines that could not be used are collected in
    ``warnings`` rather than raised, so one odd line never aborts a run.
    """

    def __init__(self, live=False):
        self.live = live
        self.recording = Recording() if live else None
        self.profile = None if live else Profile()
        self.state = State.AWAITING_BLOCK
        self.warnings = []
        self.lineno = 0
        self._handlers = (
            (HEADER_RE, self._on_header),
            (FRAME_RE, self._on_frame),
            (BLANK_RE, self._on_blank),
            (COMMENT_RE, self._on_comment),
        )

    def warn(self, msg):
        self.warnings.append(f"line {self.lineno}: {msg}")

    def feed(self, line):
        self.lineno += 1
        line = line.rstrip('\r\n')
        for regex, handler in self._handlers:
            m = regex.match(line)
            if m:
                handler(m, line)
                return
        self._unknown(line)

    def _unknown(self, line):
        self.warn(f"Don't know what to do with this: {line}")

    def _on_header(self, m, line):
        if self.state is State.IN_BLOCK:
            self.warn(f"discarding unterminated block '{self.profile.label}'")
            self.profile.discard_stack()
        if self.live:
            self.profile = self.recording.get_profile(m.group(5))
        self.profile.open_stack(m.group(1))
        self.state = State.IN_BLOCK

    def _on_frame(self, m, line):
        if self.state is not State.IN_BLOCK:
            self._unknown(line)
            return
        self.profile.add_frame(m.group(2), m.group(3))

    def _on_blank(self, m, line):
        if self.state is State.IN_BLOCK:
            self.profile.close_stack()
            self.state = State.AWAITING_BLOCK

    def _on_comment(self, m, line):
        pass

    def finish(self):
        """End of input; returns the Recording (live) or the Profile."""
        if self.state is State.IN_BLOCK:
            self.warn(f"discarding unterminated block '{self.profile.label}' "
                      f"at end of input")
            self.profile.discard_stack()
            self.state = State.AWAITING_BLOCK
        return self.recording if self.live else self.profile


def parse_raw(lines, live=False):
    """Parse raw stack dump lines.

    Returns (result, warnings) where result is a Profile, or a Recording
    when ``live`` is set.
    """
    parser = RawParser(live)
    for line in lines:
        parser.feed(line)
    return parser.finish(), parser.warnings
