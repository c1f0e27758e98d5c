"""Shared core type aliases used across contracts, the orchestrator, and ports."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

BindParams = Mapping[str, Any]
NamedParams = Dict[str, Any]
QueryParams = Union[NamedParams, None]

RowMapping = Mapping[str, Any]
Rows = List[RowMapping]

LobMetaInfo = Mapping[str, str]
UpsertCallback = Callable[[Optional[BaseException], Any], None]
DuplicateKeyMarkers = Sequence[str]
