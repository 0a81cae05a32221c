"""Type aliases used throughout koji_database."""

from __future__ import annotations

import os  # noqa: TC003
from typing import Any, Union

JSONValue = Any
Document = dict[str, Any]
Payload = dict[str, Any]
PathLike = Union[str, "os.PathLike[str]"]  # noqa: UP007
