#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
