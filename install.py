# !/usr/bin/env python3
# filename: lamp-lemp-installer/install.py
# -*- coding: utf-8 -*-
"""
Entry point for the LAMP/LEMP stack installer when run from a checkout,
e.g. ``sudo python3 install.py --lamp --php-version=8.2``.
"""

import sys

from lampstack.cli import main

if __name__ == "__main__":
    sys.exit(main())
