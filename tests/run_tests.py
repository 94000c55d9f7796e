"""Script to run the SprinkSync test suite."""
import os
import sys
import pytest

if __name__ == '__main__':
    tests_dir = os.path.dirname(os.path.abspath(__file__))
    sys.path.insert(0, os.path.dirname(tests_dir))

    # Run pytest with verbose output; extra arguments are passed through
    exit_code = pytest.main([
        '-v',           # Verbose
        '--tb=short',   # Short traceback format
        tests_dir
    ] + sys.argv[1:])
    sys.exit(exit_code)
