#!/usr/bin/env python3
"""
S3 REST request signer

Run this script to sign or send requests to an S3-compatible service.

Usage:
    python run.py sign GET mybucket key.txt    # Print a signed request
    python run.py get mybucket                 # List a bucket
    python run.py -c custom.json get           # Use custom config
    python run.py -v get mybucket key.txt      # Debug logging
"""

import sys
from s3rest.cli import main

if __name__ == "__main__":
    sys.exit(main())
