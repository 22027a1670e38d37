"""
Directory records: a DN, a friendly name and an ordered set of attributes.
"""

from collections.abc import Iterator, Sequence

from ldap.cidict import cidict

from .attributes import (
    AttributeValue,
    MultiValuedAttribute,
    SingleValuedAttribute,
)
from .typing import LDAPEntry


def friendly_name_from_dn(dn: str) -> str:
    """
    Derive a friendly name from the first RDN of ``dn``.

    ``cn=Jane,ou=People,dc=example,dc=com`` becomes ``jane``.  ``dn`` is
    assumed to start with ``key=value,``; anything else gives an unspecified
    result.

    Args:
        dn: A distinguished name.

    Returns:
        The value of the first RDN, lower-cased.

    """
    return dn.split(",", 1)[0].partition("=")[2].lower()


class DirectoryRecord:
    """
    One entry from the directory, or a set of edits to apply to one.

    Attributes are kept in insertion order, keyed by name.  Adding an
    attribute whose name is already present replaces the old one in place.

    Records have no reference back to the client that produced them, so they
    can be kept, copied and edited freely.

    Args:
        dn: The distinguished name of the entry.
        friendly_name: A short display name for the entry.

    Keyword Args:
        attributes: Initial attributes, in order.

    """

    def __init__(
        self,
        dn: str,
        friendly_name: str | None = None,
        attributes: Sequence[AttributeValue] | None = None,
    ) -> None:
        self.dn = dn
        self.friendly_name = friendly_name
        self._attributes: dict[str, AttributeValue] = {}
        for attr in attributes or []:
            self.add_attribute(attr)

    @classmethod
    def from_entry(
        cls,
        entry: LDAPEntry,
        attributes: Sequence[AttributeValue] | None = None,
        friendly_name_attribute: str | None = None,
    ) -> "DirectoryRecord":
        """
        Build a record from one raw python-ldap search entry.

        Args:
            entry: The ``(dn, attrs)`` tuple from the search.

        Keyword Args:
            attributes: The projection that was requested.  Only the name and
                arity of each item are used; a new attribute is created for
                each.  If ``None``, the record is returned bare.
            friendly_name_attribute: If set, the friendly name comes from this
                attribute instead of the DN.  It is ``None`` if the entry does
                not have it.

        Returns:
            A new record.

        """
        dn, raw = entry
        # Attribute names in LDAP are case-insensitive; the server may not
        # return them in the case we asked for them
        data = cidict(raw)
        if friendly_name_attribute:
            values = data.get(friendly_name_attribute)
            friendly_name = values[0].decode("utf-8").lower() if values else None
        else:
            friendly_name = friendly_name_from_dn(dn)
        record = cls(dn, friendly_name)
        for requested in attributes or []:
            attr = AttributeValue.for_arity(requested.name, requested.arity)
            attr.from_db_value(data.get(requested.name))
            record.add_attribute(attr)
        return record

    @property
    def attributes(self) -> list[AttributeValue]:
        """
        A copy of our attribute list, in insertion order.  Changing the list
        does not change the record; use the setter methods for that.
        """
        return list(self._attributes.values())

    def set_attributes(self, attributes: Sequence[AttributeValue]) -> None:
        """Replace all our attributes with ``attributes``."""
        self.clear_attributes()
        for attr in attributes:
            self.add_attribute(attr)

    def add_attribute(self, attr: AttributeValue) -> None:
        """
        Add ``attr``, replacing any attribute with the same name.
        """
        self._attributes[attr.name] = attr

    def clear_attributes(self) -> None:
        self._attributes.clear()

    def get_attribute(self, name: str) -> AttributeValue | None:
        """
        Return the attribute named ``name`` (case-sensitive), or ``None``.
        """
        return self._attributes.get(name)

    def set_single_value(self, name: str, value: str | None) -> None:
        """
        Set the value of single-valued attribute ``name``, adding the
        attribute if we don't have it yet.

        Args:
            name: The attribute name.  Case-sensitive.
            value: The new value.

        Raises:
            InvalidOperation: ``name`` exists and is multi-valued.

        """
        attr = self._attributes.get(name)
        if attr is None:
            self._attributes[name] = SingleValuedAttribute(name, value)
        else:
            attr.single_value = value

    def set_multi_values(self, name: str, values: list[str] | None) -> None:
        """
        Set the values of multi-valued attribute ``name``, adding the
        attribute if we don't have it yet.

        Args:
            name: The attribute name.  Case-sensitive.
            values: The new values.

        Raises:
            InvalidOperation: ``name`` exists and is single-valued.

        """
        attr = self._attributes.get(name)
        if attr is None:
            self._attributes[name] = MultiValuedAttribute(name, values)
        else:
            attr.multi_values = values

    def rename_attribute(self, old_name: str, new_name: str) -> None:
        """
        Rename attribute ``old_name`` to ``new_name``, keeping its values and
        op.  The renamed attribute moves to the end of the attribute order.

        Raises:
            KeyError: we have no attribute named ``old_name``.

        """
        attr = self._attributes.pop(old_name)
        attr.name = new_name
        self._attributes[new_name] = attr

    def __contains__(self, name: object) -> bool:
        return name in self._attributes

    def __iter__(self) -> Iterator[AttributeValue]:
        return iter(self.attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __str__(self) -> str:
        return str(self.friendly_name)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.dn} {self.attributes!r}>"
