#!/usr/bin/env python3
"""
RNDC Config Manager - Main Entry Point

This is the main entry point for the RNDC Config Manager.
It can be run directly or imported as a module.
"""

from rndc_config_manager.cli.main import main

if __name__ == "__main__":
    main()
