"""Shared type aliases used across contracts and ports."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple, Union

SocketHandle = int
Payload = Union[bytes, bytearray, memoryview, str]
Address = Tuple[str, int]

Params = Sequence[str]
Row = List[str]
Table = List[Row]
NullableRow = List[Optional[str]]
NullableTable = List[NullableRow]
