#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

import collections.abc
import os
import pathlib
import typing

if hasattr(typing, "Self"):  # 3.11+
    Self = typing.Self
else:
    import typing_extensions

    Self = typing_extensions.Self

Union = typing.Union
Optional = typing.Optional
Any = typing.Any
PathLike = Union[str, pathlib.Path, os.PathLike]

Iterable = collections.abc.Iterable
Callable = collections.abc.Callable
Sequence = collections.abc.Sequence
Mapping = collections.abc.Mapping
NamedTuple = typing.NamedTuple

# a sysfs value is raw text, a provider value is a number
Value = Union[str, int, float]
