#!/usr/bin/env python3
"""
Wrapper script to run the dynakube-operator with Kopf.

Launches Kopf's CLI with all standard arguments and the operator's handlers
registered.

Usage:
    python run_operator.py [any kopf run arguments]

Examples:
    python run_operator.py --verbose --all-namespaces
    python run_operator.py -n dynatrace --log-format=json
"""

import sys

if __name__ == '__main__':
    import kopf.cli

    # Registers startup/cleanup and the DynaKube handlers via decorators
    import dynakube.app  # noqa: F401

    # Behave as if the user called: kopf run <args>
    sys.argv.insert(1, 'run')

    sys.exit(kopf.cli.main(prog_name="kopf"))
