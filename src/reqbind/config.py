"""Binding configuration.

BindConfig is a frozen dataclass: immutable after creation, passed
explicitly to ``bind()``; there is no global state.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

DEFAULT_MAX_MEMORY_SIZE = 32 * 1024 * 1024  # 32 MiB


@dataclass(frozen=True, slots=True)
class BindConfig:
    """Binding configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = BindConfig(max_memory_size=4 * 1024 * 1024)
        await bind(request, params, config=config)
    """

    # Multipart file parts above this size are spooled to a temporary file
    max_memory_size: int = DEFAULT_MAX_MEMORY_SIZE

    # JSON decoder used for the body pass; receives the raw body bytes
    json_loads: Callable[[bytes], Any] = json.loads

    def __post_init__(self) -> None:
        if self.max_memory_size < 0:
            msg = f"max_memory_size must be >= 0, got {self.max_memory_size}"
            raise ValueError(msg)
