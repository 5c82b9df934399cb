from __future__ import annotations

import ast
import unittest
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
CHECKED_DIRS = (ROOT / 'app',)
ALLOWED = {ROOT / 'app' / 'core' / 'time_provider.py'}
CLOCK_CALLS = {('datetime', 'now'), ('datetime', 'utcnow'), ('datetime', 'today'), ('date', 'today')}


def _clock_calls(source: str) -> list[int]:
    """Line numbers of ``datetime.now()``-style calls; ``default=datetime.utcnow`` references are fine."""
    lines = []
    for node in ast.walk(ast.parse(source)):
        if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
            continue
        owner = node.func.value
        if isinstance(owner, ast.Name) and (owner.id, node.func.attr) in CLOCK_CALLS:
            lines.append(node.lineno)
    return lines


class NoDirectClockTests(unittest.TestCase):
    def test_clock_reads_go_through_time_provider(self):
        violations = []
        for directory in CHECKED_DIRS:
            for file_path in sorted(directory.rglob('*.py')):
                if file_path in ALLOWED:
                    continue
                for line_no in _clock_calls(file_path.read_text(encoding='utf-8')):
                    violations.append(f'{file_path.relative_to(ROOT)}:{line_no}')
        self.assertEqual(violations, [], 'Use app.core.time_provider instead of reading the clock directly')

    def test_detector_ignores_column_defaults(self):
        self.assertEqual(_clock_calls('x = Column(default=datetime.utcnow)'), [])
        self.assertEqual(_clock_calls('a = 1\nb = date.today()'), [2])


if __name__ == '__main__':
    unittest.main()
