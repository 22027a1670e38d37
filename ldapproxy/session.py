"""
A thin adapter around a python-ldap connection.

:py:class:`DirectorySession` is the only place in ldapproxy that talks to
python-ldap's ``LDAPObject``.  It hands controls in and out as explicit
arguments and return values, and turns every ``ldap.LDAPError`` into a
:py:class:`~ldapproxy.exceptions.DirectoryProtocolError`.
"""

import logging
from pathlib import Path
from typing import Any

from ldap.controls import LDAPControl

from ldapproxy import ldap

from .exceptions import DirectoryProtocolError, DuplicateValueError
from .typing import LDAPEntry, ModifyModList

logger = logging.getLogger("django-ldapproxy")


def _error_message(exc: ldap.LDAPError) -> str:  # type: ignore[name-defined]
    """
    Pull a readable message out of a python-ldap exception, whose first
    argument is usually a dict with ``desc`` and ``info`` keys.
    """
    if exc.args and isinstance(exc.args[0], dict):
        details = exc.args[0]
        desc = details.get("desc", exc.__class__.__name__)
        info = details.get("info")
        return f"{desc}: {info}" if info else str(desc)
    return str(exc) or exc.__class__.__name__


def wrap_ldap_error(
    exc: ldap.LDAPError,  # type: ignore[name-defined]
    stage: str,
    dn: str | None = None,
) -> DirectoryProtocolError:
    """
    Convert a python-ldap exception into a :py:class:`DirectoryProtocolError`.
    The caller should ``raise ... from exc``.

    Args:
        exc: The python-ldap exception.
        stage: Which operation we were doing.

    Keyword Args:
        dn: The DN involved, if any.

    Returns:
        The exception to raise.

    """
    error_class = DirectoryProtocolError
    if isinstance(exc, ldap.TYPE_OR_VALUE_EXISTS):  # type: ignore[attr-defined]
        error_class = DuplicateValueError
    return error_class(_error_message(exc), stage=stage, dn=dn)


class DirectorySession:
    """
    An open, bound connection to one directory server.

    Args:
        connection: A bound python-ldap ``LDAPObject``.

    Keyword Args:
        scope: The search scope to use for :py:meth:`search`.

    """

    def __init__(
        self,
        connection: ldap.ldapobject.LDAPObject,  # type: ignore[name-defined]
        scope: int = ldap.SCOPE_SUBTREE,  # type: ignore[attr-defined]
    ) -> None:
        self.connection = connection
        self.scope = scope

    @classmethod
    def connect(  # noqa: PLR0912
        cls, config: dict[str, Any], dn: str | None = None, password: str | None = None
    ) -> "DirectorySession":
        """
        Open and bind a new connection described by ``config``.

        ``config`` is one of the ``"read"`` or ``"write"`` dicts from
        ``settings.LDAP_SERVERS``:

        .. code-block:: python

            {
                "url": "ldap://ldap.example.com",
                "user": "cn=admin,dc=example,dc=com",
                "password": "secret",
                "use_starttls": True,
                "tls_verify": "always",          # or "never"
                "tls_ca_certfile": "/etc/ssl/ca.pem",
                "timeout": 15.0,
                "sizelimit": 1000,
                "follow_referrals": False,
            }

        Args:
            config: The connection settings.

        Keyword Args:
            dn: Bind as this DN instead of ``config["user"]``.
            password: The password for ``dn``.

        Raises:
            ValueError: ``tls_verify`` is not ``"never"`` or ``"always"``.
            OSError: ``tls_ca_certfile`` does not exist or is not a file.
            DirectoryProtocolError: we could not connect or bind.

        Returns:
            A bound session.

        """
        if not dn:
            dn = config["user"]
            password = config["password"]
        ldap_object = ldap.initialize(config["url"])
        if config.get("follow_referrals", False):
            ldap_object.set_option(ldap.OPT_REFERRALS, 1)  # type: ignore[attr-defined]
        else:
            ldap_object.set_option(ldap.OPT_REFERRALS, 0)  # type: ignore[attr-defined]
        timeout = config.get("timeout", 15.0)
        ldap_object.set_option(ldap.OPT_NETWORK_TIMEOUT, float(timeout))  # type: ignore[attr-defined]
        sizelimit = config.get("sizelimit", None)
        if sizelimit:
            ldap_object.set_option(ldap.OPT_SIZELIMIT, int(sizelimit))  # type: ignore[attr-defined]
        tls_verify = config.get("tls_verify", "never")
        if tls_verify == "never":
            ldap_object.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_NEVER)  # type: ignore[attr-defined]
        elif tls_verify == "always":
            ldap_object.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_DEMAND)  # type: ignore[attr-defined]
        else:
            msg = f"Invalid tls_verify value: {tls_verify}"
            raise ValueError(msg)
        if tls_ca_certfile := config.get("tls_ca_certfile", None):
            ca_certfile = Path(tls_ca_certfile)
            if not ca_certfile.is_file():
                msg = f"CA Certificate file does not exist or is not a file: {tls_ca_certfile}"
                raise OSError(msg)
            ldap_object.set_option(ldap.OPT_X_TLS_CACERTFILE, tls_ca_certfile)  # type: ignore[attr-defined]
        ldap_object.set_option(ldap.OPT_X_TLS_NEWCTX, 0)  # type: ignore[attr-defined]
        try:
            if config.get("use_starttls", True):
                ldap_object.start_tls_s()
            ldap_object.simple_bind_s(dn, password)
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            raise wrap_ldap_error(e, "connect", dn=dn) from e
        logger.info("ldapproxy.session.connect url=%s user=%s", config["url"], dn)
        return cls(ldap_object)

    def search(
        self,
        basedn: str,
        searchfilter: str,
        attrlist: list[str] | None,
        serverctrls: list[LDAPControl] | None = None,
    ) -> tuple[list[LDAPEntry], list[LDAPControl]]:
        """
        Do one search round trip.

        Args:
            basedn: Where to search from.
            searchfilter: The LDAP filter string.
            attrlist: Which attributes to return.  ``None`` means all of them.

        Keyword Args:
            serverctrls: Request controls for this round trip only.

        Raises:
            DirectoryProtocolError: the search failed.

        Returns:
            The entries returned, and the response controls (possibly empty).

        """
        try:
            msgid = self.connection.search_ext(
                basedn,
                self.scope,
                searchfilter,
                attrlist,
                serverctrls=serverctrls,
            )
            _, rdata, _, response_controls = self.connection.result3(msgid)
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            raise wrap_ldap_error(e, "search", dn=basedn) from e
        return rdata, response_controls or []

    def modify(self, dn: str, modlist: ModifyModList) -> None:
        """
        Apply ``modlist`` to the entry at ``dn`` in one ``modify_s`` call.

        Raises:
            DuplicateValueError: an add tried to store a value that exists.
            DirectoryProtocolError: any other failure.

        """
        try:
            self.connection.modify_s(dn, modlist)
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            raise wrap_ldap_error(e, "modify", dn=dn) from e

    def close(self) -> None:
        """Unbind and drop the connection."""
        try:
            self.connection.unbind_s()
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            raise wrap_ldap_error(e, "close") from e
        logger.info("ldapproxy.session.close")
