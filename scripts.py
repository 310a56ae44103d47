#!/usr/bin/env python3
"""Development scripts for the study cafe seating service."""

import subprocess
import sys


def start():
    """Start the development server."""
    subprocess.run([
        "uvicorn",
        "study_cafe_seating.main:app",
        "--host", "0.0.0.0",
        "--port", "3000",
        "--reload"
    ])


def worker():
    """Start a Celery worker with the housekeeping beat schedule."""
    subprocess.run([
        "celery", "-A", "study_cafe_seating.tasks.celery_app:celery_app",
        "worker", "--beat", "--loglevel", "info"
    ])


def migrate():
    """Apply database migrations."""
    subprocess.run(["alembic", "upgrade", "head"])


def test():
    """Run the test suite."""
    subprocess.run(["pytest", "tests/"])


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts.py <command>")
        print("Commands: start, worker, migrate, test")
        sys.exit(1)

    command = sys.argv[1].replace("-", "_")
    if hasattr(sys.modules[__name__], command):
        getattr(sys.modules[__name__], command)()
    else:
        print(f"Unknown command: {sys.argv[1]}")
        sys.exit(1)
