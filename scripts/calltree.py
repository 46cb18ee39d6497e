"""
calltree.py — Weighted call tree shared by the raw and folded parsers

Every sample path is merged into a prefix tree rooted at a synthetic
"root" node.  Each node carries:

    value      samples that passed through the node (summed)
    diff       differential weight of the last contribution (overwritten)
    timeshare  value, or value * diff in delta mode (summed)
"""

import math


# ── Frame tree ──────────────────────────────────────────────────

class Node:
    __slots__ = ('name', 'value', 'diff', 'timeshare', 'children')

    def __init__(self, name):
        self.name = name
        self.value = 0
        self.diff = 0
        self.timeshare = 0
        self.children = {}

    def add_child(self, name):
        child = self.children.get(name)
        if child is None:
            child = Node(name)
            self.children[name] = child
        return child

    def _touch(self, value, diff, delta):
        self.value += value
        self.diff = diff
        if delta:
            self.timeshare += value * diff
        else:
            self.timeshare += value

    def add(self, frames, value, diff, delta=False):
        """Merge one stack path (outermost frame first) below this node.

        The node itself and every node along the path are credited; the
        last frame of the path is the deepest node touched.  ``frames`` is
        only read, never consumed.
        """
        node = self
        node._touch(value, diff, delta)
        for name in frames:
            node = node.add_child(name)
            node._touch(value, diff, delta)
        return node

    def find(self, *path):
        """Lookup helper: the node at ``path`` below this one, or None."""
        node = self
        for name in path:
            node = node.children.get(name)
            if node is None:
                return None
        return node

    def serialize(self, timestep=None):
        """Nested dict for this node and everything below it.

        ``tottime`` is None when no timestep is known (raw input) or when
        it comes out non-finite, so the result always dumps as strict JSON.
        Leaves carry no ``children`` key at all.
        """
        tottime = None
        if timestep is not None:
            tottime = self.timeshare * timestep
            if not math.isfinite(tottime):
                tottime = None
        res = {
            'name': self.name,
            'value': self.value,
            'diff': self.diff,
            'timeshare': self.timeshare,
            'tottime': tottime,
        }
        if self.children:
            res['children'] = [c.serialize(timestep)
                               for c in self.children.values()]
        return res


# ── Time scaling ───────────────────────────────────────────────

def compute_timestep(realtime, root):
    """Seconds per timeshare unit, or None without a realtime directive.

    A zero total timeshare gives a non-finite step (inf, -inf or nan)
    instead of raising; Node.serialize then reports tottime as None.
    """
    if realtime is None:
        return None
    if root.timeshare == 0:
        if realtime == 0 or math.isnan(realtime):
            return math.nan
        return math.copysign(math.inf, realtime)
    return realtime / root.timeshare
