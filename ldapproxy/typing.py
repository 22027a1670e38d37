"""
Type aliases for the raw python-ldap data that flows through ldapproxy.

Search entries and modlists are kept in python-ldap's own shapes so the session
adapter can hand them to :py:class:`ldap.ldapobject.LDAPObject` unchanged.
"""

#: One search result: ``(dn, {attribute: [raw values]})``
LDAPEntry = tuple[str, dict[str, list[bytes]]]
#: One ``modify_s`` item: ``(mod_op, attribute, payload)``. ``None`` payloads
#: only appear with ``ldap.MOD_DELETE``.
ModifyModListEntry = tuple[int, str, list[bytes] | None]
ModifyModList = list[ModifyModListEntry]
