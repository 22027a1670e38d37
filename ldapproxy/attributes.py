"""
Attribute value classes for directory records.

An attribute is either single-valued (one string, or ``None``) or
multi-valued (a list of strings, or ``None``).  The two kinds are separate
classes so that code which knows what it asked for can read the payload
directly, and code that doesn't can use the arity-neutral
:py:attr:`AttributeValue.value`.

Each attribute also carries an :py:class:`AttributeOp` which says what
:py:meth:`ldapproxy.client.DirectoryClient.modify_record` should do with it.
Attributes built by a search default to :py:attr:`AttributeOp.REPLACE`.
"""

import enum
from typing import Any

from .exceptions import InvalidOperation


class AttributeArity(enum.Enum):
    """How many values an attribute holds."""

    SINGLE = "single"
    MULTI = "multi"


class AttributeOp(enum.Enum):
    """What a modify call does with an attribute."""

    #: Overwrite the attribute with our value(s)
    REPLACE = "replace"
    #: Add our value(s) to the attribute.  The server refuses values it
    #: already has.
    APPEND = "append"
    #: Remove the attribute entirely.  Any value we carry is ignored.
    CLEAR = "clear"


class AttributeValue:
    """
    Base class for a named directory attribute.

    Don't instantiate this directly; use :py:class:`SingleValuedAttribute`,
    :py:class:`MultiValuedAttribute` or :py:meth:`AttributeValue.for_arity`.

    Args:
        name: The LDAP attribute name.  Case-sensitive as far as
            :py:class:`~ldapproxy.records.DirectoryRecord` is concerned.

    Keyword Args:
        op: The modify operation to apply to this attribute.

    """

    #: Set by subclasses
    arity: AttributeArity

    def __init__(self, name: str, op: AttributeOp = AttributeOp.REPLACE) -> None:
        self.name = name
        self.op = op

    @classmethod
    def for_arity(
        cls,
        name: str,
        arity: AttributeArity,
        value: Any = None,
        op: AttributeOp = AttributeOp.REPLACE,
    ) -> "AttributeValue":
        """
        Build the right subclass for ``arity``.

        Args:
            name: The LDAP attribute name.
            arity: Single or multi-valued.

        Keyword Args:
            value: The payload: a string for single-valued attributes, a list of
                strings for multi-valued ones.
            op: The modify operation.

        Returns:
            A :py:class:`SingleValuedAttribute` or
            :py:class:`MultiValuedAttribute`.

        """
        if arity == AttributeArity.SINGLE:
            return SingleValuedAttribute(name, value, op=op)
        return MultiValuedAttribute(name, value, op=op)

    def _wrong_arity(self, wanted: AttributeArity) -> InvalidOperation:
        msg = f'Attribute "{self.name}" is not {wanted.value}-valued.'
        return InvalidOperation(msg)

    @property
    def single_value(self) -> str | None:
        raise self._wrong_arity(AttributeArity.SINGLE)

    @single_value.setter
    def single_value(self, value: str | None) -> None:
        raise self._wrong_arity(AttributeArity.SINGLE)

    @property
    def multi_values(self) -> list[str] | None:
        raise self._wrong_arity(AttributeArity.MULTI)

    @multi_values.setter
    def multi_values(self, values: list[str] | None) -> None:
        raise self._wrong_arity(AttributeArity.MULTI)

    @property
    def value(self) -> str | list[str] | None:
        """The payload, whichever kind this attribute carries."""
        raise NotImplementedError

    def from_db_value(self, value: list[bytes] | None) -> None:
        """
        Load our payload from the raw values python-ldap returned.

        Args:
            value: The raw attribute values, or ``None`` if the entry did not
                have this attribute at all.

        """
        raise NotImplementedError

    def to_db_value(self) -> list[bytes]:
        """
        Encode our payload for a modlist.  ``None`` and ``None`` list items
        are dropped, so an empty payload comes back as ``[]``.
        """
        raise NotImplementedError

    def has_same_value(self, other: "AttributeValue") -> bool:
        """
        Return ``True`` if ``other`` holds the same value(s) we do.

        Multi-valued attributes are compared ignoring order, but only by
        checking that the lists are the same length and that every value in
        ``other`` appears in ours.  That means ``["a", "a", "b"]`` and
        ``["a", "b", "b"]`` compare as equal.

        Args:
            other: The attribute to compare with.

        Raises:
            InvalidOperation: ``other`` has a different arity than we do.

        Returns:
            Whether the values match.

        """
        if other.arity != self.arity:
            msg = (
                f'Can\'t compare {other.arity.value}-valued attribute "{other.name}" '
                f'with {self.arity.value}-valued attribute "{self.name}".'
            )
            raise InvalidOperation(msg)
        ours = self.value
        theirs = other.value
        if ours is None or theirs is None:
            return ours is None and theirs is None
        if self.arity == AttributeArity.SINGLE:
            return ours == theirs
        if len(ours) != len(theirs):
            return False
        return all(item in ours for item in theirs)

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}: name={self.name} op={self.op.name} "
            f"value={self.value!r}>"
        )


class SingleValuedAttribute(AttributeValue):
    """
    An attribute that holds at most one string.

    Args:
        name: The LDAP attribute name.
        value: The value, or ``None`` for "no value".

    Keyword Args:
        op: The modify operation to apply to this attribute.

    """

    arity = AttributeArity.SINGLE

    def __init__(
        self, name: str, value: str | None = None, op: AttributeOp = AttributeOp.REPLACE
    ) -> None:
        super().__init__(name, op=op)
        self._value = value

    @property
    def single_value(self) -> str | None:
        return self._value

    @single_value.setter
    def single_value(self, value: str | None) -> None:
        self._value = value

    @property
    def value(self) -> str | None:
        return self._value

    def from_db_value(self, value: list[bytes] | None) -> None:
        self._value = value[0].decode("utf-8") if value else None

    def to_db_value(self) -> list[bytes]:
        if self._value is None:
            return []
        return [self._value.encode("utf-8")]


class MultiValuedAttribute(AttributeValue):
    """
    An attribute that holds a list of strings.

    The list may contain duplicates and keeps the order it was given in, but
    :py:meth:`has_same_value` ignores order.

    Args:
        name: The LDAP attribute name.
        values: The values, or ``None`` for "attribute not present".

    Keyword Args:
        op: The modify operation to apply to this attribute.

    """

    arity = AttributeArity.MULTI

    def __init__(
        self,
        name: str,
        values: list[str] | None = None,
        op: AttributeOp = AttributeOp.REPLACE,
    ) -> None:
        super().__init__(name, op=op)
        self._values = values

    @property
    def multi_values(self) -> list[str] | None:
        return self._values

    @multi_values.setter
    def multi_values(self, values: list[str] | None) -> None:
        self._values = values

    @property
    def value(self) -> list[str] | None:
        return self._values

    def from_db_value(self, value: list[bytes] | None) -> None:
        # An absent attribute is None, not []
        if value is None:
            self._values = None
        else:
            self._values = [b.decode("utf-8") for b in value]

    def to_db_value(self) -> list[bytes]:
        if self._values is None:
            return []
        return [item.encode("utf-8") for item in self._values if item is not None]
