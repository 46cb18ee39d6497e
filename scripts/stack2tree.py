#!/usr/bin/env python3
"""
stack2tree.py — Stack samples → JSON call tree for flame graphs

Reads raw `perf script` output (default) or folded stacks with value and
diff columns (-f) and prints the merged call tree as JSON.  With -l, raw
samples are split into one tree per second of recording.

Usage:
    perf script | python3 stack2tree.py - > tree.json
    python3 stack2tree.py -l perf.txt -o live.json
    python3 stack2tree.py -f -n diff.folded > tree.json
"""

import sys
import json
import argparse

from foldedstacks import parse_folded
from rawstacks import parse_raw


PROG = 'stack2tree.py'
VERSION = '0.3.2'


def read_lines(filename):
    """Whole input split on newlines, so a trailing newline ends a block."""
    if filename == '-':
        data = sys.stdin.buffer.read().decode('utf-8', errors='replace')
    else:
        with open(filename, encoding='utf-8', errors='replace') as f:
            data = f.read()
    return data.split('\n')


def convert(lines, folded=False, live=False, negate=False):
    """Run the selected parser; returns (tree_or_recording_dict, warnings)."""
    if folded:
        root, timestep, warnings = parse_folded(lines, negate)
        return root.serialize(timestep), warnings
    result, warnings = parse_raw(lines, live)
    return result.serialize(), warnings


# ── Main ────────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(
        description='Convert stack samples into a JSON call tree for flame graphs')
    parser.add_argument('filename', help='Input file (- for stdin)')
    parser.add_argument('-f', '--folded', action='store_true',
                        help='Input is a folded stack.')
    parser.add_argument('-l', '--live', action='store_true',
                        help='Output includes a timestamp dimension for live flame graphs.')
    parser.add_argument('-n', '--negate', action='store_true',
                        help='Flip the sign of the diffs')
    parser.add_argument('-o', '--output', help='Output file (default: stdout)')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Do not report unusable input lines')
    parser.add_argument('-V', '--version', action='version',
                        version=f'{PROG} {VERSION}')
    args = parser.parse_args()

    try:
        lines = read_lines(args.filename)
    except OSError as e:
        print(f"{PROG}: cannot read {args.filename}: {e.strerror or e}", file=sys.stderr)
        sys.exit(1)

    if not any(line.strip() for line in lines):
        print(f"{PROG}: no input", file=sys.stderr)
        sys.exit(1)

    tree, warnings = convert(lines, args.folded, args.live, args.negate)

    if not args.quiet:
        for w in warnings:
            print(f"{PROG}: {w}", file=sys.stderr)
    if warnings:
        print(f"{PROG}: {len(warnings)} warning(s)", file=sys.stderr)

    text = json.dumps(tree, indent=2, allow_nan=False)
    if args.output:
        with open(args.output, 'w') as f:
            f.write(text + '\n')
    else:
        print(text)


if __name__ == '__main__':
    main()
