"""Test runner script for the cutlist intake engine.

Runs the pytest suite, optionally with a coverage report.
"""
import subprocess
import sys


def run_tests(extra_args=None):
    """Run all tests with pytest."""
    print("=" * 70)
    print("Running Cutlist Intake Tests")
    print("=" * 70)
    print()

    cmd = [sys.executable, "-m", "pytest", "tests/", "-v", "--tb=short", *(extra_args or [])]

    try:
        return subprocess.run(cmd, check=False).returncode
    except FileNotFoundError:
        print("ERROR: pytest not found. Install it with: pip install -e .[test]")
        return 1


def run_tests_with_coverage():
    """Run tests with a terminal and HTML coverage report (needs pytest-cov)."""
    code = run_tests(["--cov=intake", "--cov=tabular", "--cov=app", "--cov-report=term-missing", "--cov-report=html"])
    if code == 0:
        print()
        print("Coverage report generated in htmlcov/index.html")
    return code


if __name__ == "__main__":
    if "--coverage" in sys.argv or "-c" in sys.argv:
        exit_code = run_tests_with_coverage()
    else:
        exit_code = run_tests()

    sys.exit(exit_code)
