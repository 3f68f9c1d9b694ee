"""Changesets: staged, validated changes to a record.

A Changeset pairs the current state of a record with the input a caller
wants to apply. ``Changeset.cast`` filters the input down to the fields an
input model declares, validates the merged result with pydantic, and keeps
the values that differ from the current state as ``changes`` alongside
per-field ``errors``. Services persist ``apply_changes()`` only when the
changeset is valid.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel

from .base import ValidationError
from .schemas import BLANK_MESSAGE

T = TypeVar("T")

_VALUE_ERROR_PREFIX = "Value error, "


def _error_message(error: Dict[str, Any]) -> str:
    if error.get("type") == "missing":
        return BLANK_MESSAGE
    message = error.get("msg", "is invalid")
    if message.startswith(_VALUE_ERROR_PREFIX):
        message = message[len(_VALUE_ERROR_PREFIX):]
    return message


@dataclass
class Changeset:
    """Proposed changes to ``data`` plus accumulated field errors."""

    data: Dict[str, Any]
    schema: Optional[Type[BaseModel]] = None
    params: Dict[str, Any] = field(default_factory=dict)
    changes: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, List[str]] = field(default_factory=dict)
    associations: Dict[str, Any] = field(default_factory=dict)
    action: Optional[str] = None

    @classmethod
    def cast(
        cls,
        data: Mapping[str, Any],
        attrs: Optional[Mapping[Any, Any]],
        schema: Type[BaseModel],
    ) -> "Changeset":
        """
        Build a changeset by validating ``attrs`` merged onto ``data``.

        Args:
            data: Current column values (empty for a new record)
            attrs: Caller input; keys may be strings or other hashables and
                   are compared by ``str(key)``. Undeclared keys are dropped.
            schema: Input model declaring permitted fields and their rules

        Returns:
            Changeset whose ``valid`` reflects the validation outcome
        """
        permitted = set(schema.model_fields)
        params = {str(k): v for k, v in (attrs or {}).items() if str(k) in permitted}
        current = dict(data)

        candidate = {k: current[k] for k in permitted if k in current}
        candidate.update(params)

        changeset = cls(data=current, schema=schema, params=params)

        try:
            validated = schema.model_validate(candidate).model_dump()
        except pydantic.ValidationError as e:
            for error in e.errors():
                loc = error.get("loc") or ("base",)
                changeset.add_error(str(loc[0]), _error_message(error))
            changeset.changes = {k: v for k, v in params.items() if current.get(k) != v}
            return changeset

        changeset.changes = {
            k: validated[k] for k in params if validated[k] != current.get(k)
        }
        return changeset

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, field_name: str, message: str) -> "Changeset":
        """Record an error message against a field."""
        self.errors.setdefault(field_name, []).append(message)
        return self

    def put_change(self, field_name: str, value: Any) -> "Changeset":
        """Set a change directly, bypassing casting."""
        if self.data.get(field_name) == value:
            self.changes.pop(field_name, None)
        else:
            self.changes[field_name] = value
        return self

    def put_assoc(self, name: str, record: Any) -> "Changeset":
        """Pin an associated record and its ``<name>_id`` foreign key."""
        self.associations[name] = record
        return self.put_change(f"{name}_id", record.id)

    def get_field(self, field_name: str, default: Any = None) -> Any:
        """Value after changes, falling back to current data."""
        if field_name in self.changes:
            return self.changes[field_name]
        return self.data.get(field_name, default)

    def apply_changes(self) -> Dict[str, Any]:
        """Current data with changes applied."""
        return {**self.data, **self.changes}


@dataclass
class Result(Generic[T]):
    """Outcome of a create/update/delete: the record, or the rejected changeset."""

    ok: bool
    value: Optional[T] = None
    changeset: Optional[Changeset] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, changeset: Changeset) -> "Result[T]":
        return cls(ok=False, changeset=changeset)

    @property
    def errors(self) -> Dict[str, List[str]]:
        if self.changeset is None:
            return {}
        return self.changeset.errors

    def unwrap(self) -> T:
        """Return the value or raise ValidationError carrying the field errors."""
        if not self.ok:
            raise ValidationError("Validation failed", errors=self.errors)
        return self.value
