"""
keygate CLI

Command-line interface for issuing and rotating API keys.

Usage:
    python -m keygate.cli --help
    python -m keygate.cli users create alice
    python -m keygate.cli keys create <user-id> "CI key" --permission read
    python -m keygate.cli keys rotate <user-id> <key-id> --reason "leaked"
"""
