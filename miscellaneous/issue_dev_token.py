#!/usr/bin/env python3
"""
Issue a bearer token for local development.

Usage:
    python miscellaneous/issue_dev_token.py <actor_id> [student|staff] [minutes]
"""

import os
import sys
from datetime import timedelta

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from study_cafe_seating.config import get_settings
from study_cafe_seating.utils.auth import create_access_token


def main():
    """Print a signed token for the given actor."""
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    if get_settings().environment == "production":
        print("Refusing to issue development tokens in production")
        sys.exit(1)

    actor_id = sys.argv[1]
    role = sys.argv[2] if len(sys.argv) > 2 else "student"
    minutes = int(sys.argv[3]) if len(sys.argv) > 3 else 60

    print(create_access_token(actor_id, role, expires_delta=timedelta(minutes=minutes)))


if __name__ == "__main__":
    main()
