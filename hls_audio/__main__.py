#!/usr/bin/env python3
"""
hls-audio main entry point.

Allows hls-audio to be run as a module: python3 -m hls_audio
"""

import sys

from hls_audio.cli import main

if __name__ == "__main__":
    sys.exit(main())
