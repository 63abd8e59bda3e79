"""
Test Configuration

Environment setup MUST happen before any application import: the settings
object and the log sinks are built at import time.
"""

import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    os.environ['KVROCKS_KEY_PREFIX'] = 'test_' if worker_id == 'master' else f'test_{worker_id}_'

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)


_early_setup_test_environment()
