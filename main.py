#!/usr/bin/env python3
"""
Main entry point for share-webhook.

    python main.py render [FILE] [--content-type TYPE] [-o OUTPUT]
    python main.py classify [FILE]
    python main.py send [FILE] [--content-type TYPE]

See --help for available options.
"""

from share_webhook.cli import main


if __name__ == "__main__":
    main()
