"""Shared types for the streamload package."""

from typing import Any

Row = dict[str, Any]
Rows = list[Row]
Params = tuple | list | dict
Headers = dict[str, str]
