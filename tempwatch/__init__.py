#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

"""
Live hardware temperature sampler.

Discovers the temperature sensors of the machine once, samples all of them
concurrently at a fixed cadence and repaints the result in place:

```python
from tempwatch.engine import ThreadEngine
from tempwatch.loop import DisplayLoop
from tempwatch.source import ThermalSource

with ThreadEngine(ThermalSource()) as engine:
    DisplayLoop(engine).run()
```
"""

__version__ = "0.1.0"
