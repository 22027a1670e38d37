"""
Helpers for building search filters with ``ldap_filter``.
"""

from typing import Any

from ldap_filter import Filter


def attribute_filter(objectclass: str | None = None, **kwargs: Any) -> Any:
    """
    Build an AND filter of equality tests.

    Example:
        >>> attribute_filter(objectclass="person", uid="jane").to_string()
        '(&(objectclass=person)(uid=jane))'

    A list value matches any of its items, and a value of ``None`` matches
    entries that lack the attribute.

    Keyword Args:
        objectclass: If given, only match entries of this objectclass.
        **kwargs: attribute name to value.

    Returns:
        An ``ldap_filter`` filter object.  Pass it straight to
        :py:meth:`~ldapproxy.client.DirectoryClient.get_records` or call
        ``.to_string()`` on it.

    """
    chain = []
    if objectclass:
        chain.append(Filter.attribute("objectclass").equal_to(objectclass))
    for name, value in kwargs.items():
        if value is None:
            chain.append(Filter.NOT(Filter.attribute(name).present()))
        elif isinstance(value, list | tuple):
            chain.append(Filter.OR([Filter.attribute(name).equal_to(v) for v in value]))
        else:
            chain.append(Filter.attribute(name).equal_to(value))
    if not chain:
        return Filter.attribute("objectClass").present()
    if len(chain) == 1:
        return chain[0]
    return Filter.AND(chain)


def filter_string(searchfilter: Any) -> str:
    """
    Return ``searchfilter`` as an LDAP filter string.  Strings pass through
    untouched; ``ldap_filter`` objects are rendered.
    """
    if isinstance(searchfilter, str):
        return searchfilter
    return searchfilter.to_string()
