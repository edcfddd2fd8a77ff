#!/usr/bin/env python3
"""
devstack-setup: provisions the Laravel + React development stack.
Run from the directory holding docker-compose.yml.
"""
from devstack.cli import main

if __name__ == "__main__":
    main()
