"""
foldedstacks.py — Folded stacks with value/diff columns → call tree

Input format, one stack per line:

    REALTIME: 2.0
    main;parse;tokenize 10 0
    main;parse;emit 5 -2

Two directives set the wall-clock duration of the profile:

    REALTIME: <seconds>    timeshare accumulates value
    TIMEDELTA: <seconds>   timeshare accumulates value * diff from here on

The duration is spread over the root's timeshare to give each node a
tottime in seconds.
"""

import re

from calltree import Node, compute_timestep


DATA_RE = re.compile(r'^(.*?)\s+(\S+)\s+(\S+)\s*$')


def _parse_directive(line):
    fields = line.split()
    if len(fields) < 2:
        raise ValueError(f"missing duration in '{line}'")
    return float(fields[1])


def parse_folded(lines, negate=False):
    """Parse folded stack lines into one tree.

    Returns (root, timestep, warnings).  timestep is None when the input
    has no REALTIME/TIMEDELTA directive.  Lines that cannot be used are
    skipped and reported in warnings.
    """
    root = Node('root')
    realtime = None
    delta = False
    warnings = []

    for lineno, line in enumerate(lines, 1):
        line = line.rstrip('\r\n')
        if not line.strip() or line.startswith('#'):
            continue

        if line.startswith('REALTIME:') or line.startswith('TIMEDELTA:'):
            try:
                realtime = _parse_directive(line)
            except ValueError as e:
                warnings.append(f"line {lineno}: bad directive: {e}")
                continue
            if line.startswith('TIMEDELTA:'):
                delta = True
            continue

        m = DATA_RE.match(line)
        if not m:
            warnings.append(f"line {lineno}: Don't know what to do with this: {line}")
            continue

        try:
            value = int(m.group(2))
            diff = int(m.group(3))
        except ValueError:
            warnings.append(f"line {lineno}: bad value/diff in: {line}")
            continue
        if negate:
            diff = -diff

        root.add(m.group(1).split(';'), value, diff, delta)

    return root, compute_timestep(realtime, root), warnings
