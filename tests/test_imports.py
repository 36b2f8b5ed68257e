"""Every public module imports on its own, in a fresh interpreter."""

import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent

MODULES = [
    'ycsb_sql.core.db',
    'ycsb_sql.core.deadline',
    'ycsb_sql.core.dialect',
    'ycsb_sql.core.properties',
    'ycsb_sql.core.query_builder',
    'ycsb_sql.core.registry',
    'ycsb_sql.core.session',
    'ycsb_sql.core.statement_cache',
    'ycsb_sql.utils.connection_pool',
    'ycsb_sql.utils.field_pairs',
    'ycsb_sql.utils.logging_setup',
    'ycsb_sql.utils.rows',
    'ycsb_sql.backends',
    'ycsb_sql.backends.sql',
]


@pytest.mark.parametrize("module", MODULES)
def test_module_imports_standalone(module):
    result = subprocess.run(
        [sys.executable, '-c', f"import {module}"],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0, result.stderr
