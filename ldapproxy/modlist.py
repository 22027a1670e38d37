"""
Translate attribute edits on a record into a python-ldap modlist.
"""

from typing import TYPE_CHECKING

from ldapproxy import ldap

from .attributes import AttributeOp, AttributeValue
from .typing import ModifyModList, ModifyModListEntry

if TYPE_CHECKING:
    from .records import DirectoryRecord


class AttributeModificationMapper:
    """
    Builds ``modify_s`` modlists from the attributes of a
    :py:class:`~ldapproxy.records.DirectoryRecord`.

    Each attribute on the record becomes exactly one modlist item, in the
    record's attribute order:

    * :py:attr:`~ldapproxy.attributes.AttributeOp.REPLACE` becomes
      ``ldap.MOD_REPLACE`` with the encoded value(s); no value means "set to
      empty".
    * :py:attr:`~ldapproxy.attributes.AttributeOp.APPEND` becomes
      ``ldap.MOD_ADD`` with the same payload.
    * :py:attr:`~ldapproxy.attributes.AttributeOp.CLEAR` becomes
      ``ldap.MOD_DELETE`` with no payload, whatever value the attribute holds.
    """

    #: Map our edit operations to python-ldap's modify operations
    MOD_OPS: dict[AttributeOp, int] = {  # noqa: RUF012
        AttributeOp.REPLACE: ldap.MOD_REPLACE,  # type: ignore[attr-defined]
        AttributeOp.APPEND: ldap.MOD_ADD,  # type: ignore[attr-defined]
        AttributeOp.CLEAR: ldap.MOD_DELETE,  # type: ignore[attr-defined]
    }

    def item(self, attr: AttributeValue) -> ModifyModListEntry:
        """
        Build the modlist item for one attribute.

        Args:
            attr: The attribute to encode.

        Returns:
            A ``(mod_op, name, payload)`` tuple.

        """
        if attr.op == AttributeOp.CLEAR:
            # Delete the whole attribute, not particular values
            return (self.MOD_OPS[attr.op], attr.name, None)
        return (self.MOD_OPS[attr.op], attr.name, attr.to_db_value())

    def modlist(self, record: "DirectoryRecord") -> ModifyModList:
        """
        Build the modlist for all the attributes on ``record``.

        Args:
            record: The record whose attributes hold the edits.

        Returns:
            The modlist, possibly empty.

        """
        return [self.item(attr) for attr in record.attributes]
