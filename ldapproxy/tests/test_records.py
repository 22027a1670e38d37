"""
Tests for DirectoryRecord.
"""

import unittest

from ldapproxy.attributes import (
    AttributeOp,
    MultiValuedAttribute,
    SingleValuedAttribute,
)
from ldapproxy.exceptions import InvalidOperation
from ldapproxy.records import DirectoryRecord, friendly_name_from_dn


class TestFriendlyNameFromDn(unittest.TestCase):

    def test_first_rdn_value_lowercased(self):
        self.assertEqual(friendly_name_from_dn("cn=Jane,ou=People,dc=example,dc=com"), "jane")

    def test_value_with_spaces(self):
        self.assertEqual(
            friendly_name_from_dn("CN=Jane Doe,OU=People,DC=example,DC=com"), "jane doe"
        )


class TestDirectoryRecordAttributes(unittest.TestCase):
    """Test the ordered attribute mapping on a record."""

    def setUp(self):
        self.record = DirectoryRecord(
            "uid=jane,ou=people,dc=example,dc=com",
            "jane",
            [
                SingleValuedAttribute("cn", "Jane Doe"),
                MultiValuedAttribute("memberOf", ["g1", "g2"]),
                SingleValuedAttribute("mail", "jane@example.com"),
            ],
        )

    def test_insertion_order(self):
        self.assertEqual([a.name for a in self.record.attributes], ["cn", "memberOf", "mail"])
        self.assertEqual([a.name for a in self.record], ["cn", "memberOf", "mail"])
        self.assertEqual(len(self.record), 3)

    def test_attributes_is_a_copy(self):
        self.record.attributes.clear()
        self.assertEqual(len(self.record), 3)

    def test_add_attribute_last_write_wins(self):
        self.record.add_attribute(SingleValuedAttribute("cn", "Janet Doe"))
        self.assertEqual(len(self.record), 3)
        self.assertEqual(self.record.get_attribute("cn").single_value, "Janet Doe")
        self.assertEqual([a.name for a in self.record.attributes], ["cn", "memberOf", "mail"])

    def test_constructor_last_write_wins(self):
        record = DirectoryRecord(
            "uid=jane,dc=example,dc=com",
            "jane",
            [SingleValuedAttribute("cn", "a"), SingleValuedAttribute("cn", "b")],
        )
        self.assertEqual(len(record), 1)
        self.assertEqual(record.get_attribute("cn").single_value, "b")

    def test_get_attribute_is_case_sensitive(self):
        self.assertIsNotNone(self.record.get_attribute("memberOf"))
        self.assertIsNone(self.record.get_attribute("memberof"))
        self.assertIn("memberOf", self.record)
        self.assertNotIn("memberof", self.record)

    def test_set_single_value_updates(self):
        self.record.set_single_value("mail", "jd@example.com")
        self.assertEqual(self.record.get_attribute("mail").single_value, "jd@example.com")
        self.assertEqual(len(self.record), 3)

    def test_set_single_value_inserts(self):
        self.record.set_single_value("sn", "Doe")
        attr = self.record.get_attribute("sn")
        self.assertIsInstance(attr, SingleValuedAttribute)
        self.assertEqual(attr.single_value, "Doe")
        self.assertEqual(self.record.attributes[-1].name, "sn")

    def test_set_multi_values_updates_and_inserts(self):
        self.record.set_multi_values("memberOf", ["g3"])
        self.assertEqual(self.record.get_attribute("memberOf").multi_values, ["g3"])
        self.record.set_multi_values("objectClass", ["top", "person"])
        self.assertIsInstance(self.record.get_attribute("objectClass"), MultiValuedAttribute)

    def test_set_with_wrong_arity_raises(self):
        with self.assertRaises(InvalidOperation):
            self.record.set_single_value("memberOf", "g1")
        with self.assertRaises(InvalidOperation):
            self.record.set_multi_values("cn", ["a"])

    def test_set_attributes_replaces_everything(self):
        self.record.set_attributes([SingleValuedAttribute("sn", "Doe")])
        self.assertEqual([a.name for a in self.record.attributes], ["sn"])

    def test_clear_attributes(self):
        self.record.clear_attributes()
        self.assertEqual(self.record.attributes, [])

    def test_rename_attribute(self):
        self.record.get_attribute("cn").op = AttributeOp.APPEND
        self.record.rename_attribute("cn", "displayName")
        attr = self.record.get_attribute("displayName")
        self.assertEqual(attr.name, "displayName")
        self.assertEqual(attr.single_value, "Jane Doe")
        self.assertEqual(attr.op, AttributeOp.APPEND)
        self.assertIsNone(self.record.get_attribute("cn"))

    def test_rename_missing_attribute_raises(self):
        with self.assertRaises(KeyError):
            self.record.rename_attribute("nope", "other")


class TestDirectoryRecordFromEntry(unittest.TestCase):
    """Test building records from raw search entries."""

    def setUp(self):
        self.entry = (
            "cn=Jane,ou=People,dc=example,dc=com",
            {
                "CN": [b"Jane"],
                "uid": [b"JDoe"],
                "memberOf": [b"cn=staff,dc=example,dc=com", b"cn=vpn,dc=example,dc=com"],
            },
        )

    def test_bare_record(self):
        record = DirectoryRecord.from_entry(self.entry)
        self.assertEqual(record.dn, "cn=Jane,ou=People,dc=example,dc=com")
        self.assertEqual(record.friendly_name, "jane")
        self.assertEqual(len(record), 0)

    def test_requested_attributes(self):
        record = DirectoryRecord.from_entry(
            self.entry,
            attributes=[
                SingleValuedAttribute("cn"),
                MultiValuedAttribute("memberOf"),
                SingleValuedAttribute("mail"),
                MultiValuedAttribute("objectClass"),
            ],
        )
        self.assertEqual(
            [a.name for a in record.attributes], ["cn", "memberOf", "mail", "objectClass"]
        )
        # Attribute names from the server are matched case-insensitively
        self.assertEqual(record.get_attribute("cn").single_value, "Jane")
        self.assertEqual(
            record.get_attribute("memberOf").multi_values,
            ["cn=staff,dc=example,dc=com", "cn=vpn,dc=example,dc=com"],
        )
        self.assertIsNone(record.get_attribute("mail").single_value)
        self.assertIsNone(record.get_attribute("objectClass").multi_values)

    def test_projection_is_not_mutated(self):
        projection = [SingleValuedAttribute("cn")]
        record = DirectoryRecord.from_entry(self.entry, attributes=projection)
        self.assertIsNone(projection[0].single_value)
        self.assertIsNot(record.get_attribute("cn"), projection[0])

    def test_friendly_name_attribute(self):
        record = DirectoryRecord.from_entry(self.entry, friendly_name_attribute="uid")
        self.assertEqual(record.friendly_name, "jdoe")

    def test_missing_friendly_name_attribute(self):
        record = DirectoryRecord.from_entry(self.entry, friendly_name_attribute="employeeNumber")
        self.assertIsNone(record.friendly_name)


if __name__ == "__main__":
    unittest.main()
