# devsetup/__main__.py
# -*- coding: utf-8 -*-
import sys

from devsetup.cli import main

if __name__ == "__main__":
    sys.exit(main())
