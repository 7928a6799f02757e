"""Named parameter accumulator for one builder instance."""
from __future__ import annotations

from collections import abc
from dataclasses import asdict, is_dataclass
from typing import Any, Iterator

from pydantic import BaseModel


def clean_parameter_name(name: str) -> str:
    """Strip the ``@`` prefix and backtick quoting from a parameter name."""
    return name.replace("`", "").lstrip("@")


class ParameterSet:
    """Ordered ``name → value`` parameters matching ``@name`` placeholders.

    :meth:`add` overwrites an existing name.  :meth:`add_dynamic` merges
    every key of a structured object; later values win.
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    @staticmethod
    def is_structured(value: Any) -> bool:
        """True for values whose members can be bound in bulk."""
        return (
            isinstance(value, (abc.Mapping, BaseModel, ParameterSet))
            or (is_dataclass(value) and not isinstance(value, type))
        )

    def add(self, name: str, value: Any) -> None:
        self._values[clean_parameter_name(name)] = value

    def add_dynamic(self, source: Any) -> None:
        """Merge the members of ``source`` as parameters.

        Accepts mappings (including
        :class:`~condql.conditions.hash.ConditionHash`), pydantic models,
        dataclass instances and other ``ParameterSet`` objects.

        Raises:
            TypeError: If ``source`` is not a structured object.
        """
        if isinstance(source, ParameterSet):
            items: abc.Iterable[tuple[Any, Any]] = source.as_dict().items()
        elif isinstance(source, abc.Mapping):
            items = source.items()
        elif isinstance(source, BaseModel):
            items = source.model_dump().items()
        elif is_dataclass(source) and not isinstance(source, type):
            items = asdict(source).items()
        else:
            raise TypeError(f"Cannot bind parameters from {type(source).__name__}.")
        for name, value in items:
            self.add(str(name), value)

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(clean_parameter_name(name), default)

    @property
    def names(self) -> list[str]:
        return list(self._values)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and clean_parameter_name(name) in self._values

    def __getitem__(self, name: str) -> Any:
        return self._values[clean_parameter_name(name)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ParameterSet({self._values!r})"
