#!/usr/bin/env python3
"""
Main entry point for the r2d2 IRC bot
"""

from r2d2.main import run

if __name__ == "__main__":
    run()
