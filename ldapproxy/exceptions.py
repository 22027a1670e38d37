"""
Exceptions raised by ldapproxy.

There are two families:

* :py:class:`DirectoryProtocolError` wraps anything the directory server or the
  python-ldap transport complained about.  The underlying ``ldap.LDAPError`` is
  always available as ``__cause__``.
* :py:class:`InvalidOperation` signals a programming error on the caller's
  side: reading a single value off a multi-valued attribute, or using a
  :py:class:`~ldapproxy.client.DirectoryClient` that is not open.

"Nothing matched" is never an exception; searches return ``None`` for that.
"""


class DirectoryProtocolError(Exception):
    """
    A call to the directory server failed.

    Args:
        msg: Human readable description.

    Keyword Args:
        stage: Which operation failed: ``"connect"``, ``"search"``,
            ``"modify"`` or ``"close"``.
        dn: The DN being searched from or modified, if any.
        round: For paged searches, the 1-based round trip that failed.

    """

    def __init__(
        self,
        msg: str,
        stage: str | None = None,
        dn: str | None = None,
        round: int | None = None,  # noqa: A002
    ) -> None:
        super().__init__(msg)
        self.stage = stage
        self.dn = dn
        self.round = round

    @property
    def ldap_error(self) -> BaseException | None:
        """The python-ldap exception we were raised from, if any."""
        return self.__cause__

    def with_context(self, **kwargs) -> "DirectoryProtocolError":
        """
        Fill in any context fields that are not already set, and return
        ``self`` so it can be re-raised.
        """
        for key, value in kwargs.items():
            if getattr(self, key, None) is None:
                setattr(self, key, value)
        return self

    def __str__(self) -> str:
        context = [
            f"{name}={value}"
            for name, value in (("stage", self.stage), ("dn", self.dn), ("round", self.round))
            if value is not None
        ]
        msg = super().__str__()
        if context:
            return f"{msg} ({', '.join(context)})"
        return msg


class DuplicateValueError(DirectoryProtocolError):
    """An add (APPEND) tried to store a value the attribute already has."""


class InvalidOperation(Exception):  # noqa: N818
    """The caller used an attribute or client in a way it does not support."""
