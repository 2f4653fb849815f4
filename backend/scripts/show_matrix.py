#!/usr/bin/env python
"""Print the compiled-in permission matrix for audits.

Usage:
    python backend/scripts/show_matrix.py                  # aligned text table
    python backend/scripts/show_matrix.py --json           # JSON with checksum
    python backend/scripts/show_matrix.py --fail-if-changed <sha256>

--fail-if-changed exits with status 4 when the table checksum differs, so a
CI job can flag any permission change for review.
"""
from __future__ import annotations
import os, sys, argparse, json, hashlib

sys.path.append(os.path.abspath('backend'))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from logiflow.constants.permissions import Module, Role, matrix_snapshot  # type: ignore


def matrix_checksum(matrix=None) -> str:
    matrix = matrix if matrix is not None else matrix_snapshot()
    canonical = json.dumps(matrix, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def render_text(matrix=None) -> str:
    matrix = matrix if matrix is not None else matrix_snapshot()
    roles = [r.value for r in Role]
    width = max(len(m.value) for m in Module) + 2
    lines = ['module'.ljust(width) + ' | '.join(r.ljust(32) for r in roles).rstrip()]
    for module in Module:
        cells = [(','.join(matrix[module.value][r]) or '(none)').ljust(32) for r in roles]
        lines.append(module.value.ljust(width) + ' | '.join(cells).rstrip())
    return '\n'.join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Show the role/module permission matrix')
    parser.add_argument('--json', action='store_true')
    parser.add_argument('--fail-if-changed', metavar='SHA256')
    args = parser.parse_args(argv)

    matrix = matrix_snapshot()
    checksum = matrix_checksum(matrix)
    if args.json:
        print(json.dumps({'modules': matrix, 'checksum_sha256': checksum}, indent=2, sort_keys=True))
    else:
        print(render_text(matrix))
        print(f"\nchecksum: {checksum}")
    if args.fail_if_changed and args.fail_if_changed != checksum:
        print(f"[CHECKSUM] MISMATCH: expected {args.fail_if_changed} got {checksum}")
        return 4
    return 0


if __name__ == '__main__':
    sys.exit(main())
