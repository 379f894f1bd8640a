"""Type alias for data decoded from YAML configuration files.

``yaml.safe_load`` returns plain containers and scalars; decoding code
narrows this alias with isinstance checks instead of reaching for Any.
"""

from __future__ import annotations

UnknownJson = dict[str, "UnknownJson"] | list["UnknownJson"] | str | int | float | bool | None


__all__ = ["UnknownJson"]
