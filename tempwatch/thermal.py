#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

"""
Human friendly view of a linux thermal zone.

```python
from tempwatch.thermal import ThermalZone

tz = ThermalZone("/sys/class/thermal/thermal_zone0")
print(tz.type)
```
"""

from .sysfs import Device, Str

PREFIX = "thermal_zone"
VALUE_FILE = "temp"


class ThermalZone(Device):
    """
    Thermal sensor

    Attributes:
        type (str): thermal zone type (ex: x86_pkg_temp)
    """

    type = Str("type")
