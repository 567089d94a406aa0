#!/usr/bin/env python3
"""
Issue a session token for local development.

Reads JWT_SECRET from .env file.
Run from project root: python scripts/issue_token.py <user_id> <org_id> <role>
"""

import sys
import os

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

# Load .env file
from dotenv import load_dotenv
load_dotenv(os.path.join(project_root, ".env"))

from src.auth.jwt import create_access_token
from src.auth.permissions import CANONICAL_ROLES, normalize_role


def main():
    if len(sys.argv) != 4:
        print("Usage: python scripts/issue_token.py <user_id> <org_id> <role>")
        sys.exit(1)

    user_id, org_id, role = sys.argv[1:]
    try:
        role = normalize_role(role)
    except ValueError:
        print(f"Error: role must be one of {sorted(CANONICAL_ROLES)}")
        sys.exit(1)

    token = create_access_token(user_id=user_id, org_id=org_id, role=role)
    print(token)


if __name__ == "__main__":
    main()
