"""
Record Validation Tests

Module: tests.test_records
Date: 2026-10-19
Version: 0.1.0

Covers payload validation, patch semantics and property search filters.
"""

import unittest

from estate_crm.core.exceptions import ValidationError
from estate_crm.persistence.records import (
    Client,
    Property,
    PropertyFilter,
    Showing,
    UserRecord,
)


def property_payload(**overrides):
    payload = {
        "address": "12 Garden St",
        "status": "available",
        "price": 100000,
        "area": 50,
    }
    payload.update(overrides)
    return payload


class TestPropertyValidation(unittest.TestCase):
    """Property creation and patch rules"""

    def test_available_property_without_owner(self):
        prop = Property.from_payload(property_payload(), "10001")

        self.assertEqual(prop.id, "10001")
        self.assertEqual(prop.status, "available")
        self.assertEqual(prop.type, "apartment")
        self.assertEqual(prop.owner, "")

    def test_sold_property_requires_owner(self):
        with self.assertRaises(ValidationError):
            Property.from_payload(property_payload(status="sold"), "10001")

    def test_reserved_property_with_owner(self):
        prop = Property.from_payload(
            property_payload(status="reserved", owner="Ivan", owner_phone="+380501112233"),
            "10001",
        )
        self.assertEqual(prop.owner, "Ivan")

    def test_missing_address(self):
        with self.assertRaises(ValidationError):
            Property.from_payload(property_payload(address="  "), "10001")

    def test_price_must_be_positive(self):
        for price in (0, -5, "abc", None, True):
            with self.subTest(price=price):
                with self.assertRaises(ValidationError):
                    Property.from_payload(property_payload(price=price), "10001")

    def test_non_finite_numbers_rejected(self):
        for field, value in (
            ("price", float("nan")),
            ("price", float("inf")),
            ("price", "nan"),
            ("price", "Infinity"),
            ("area", "-inf"),
            ("rooms", "nan"),
            ("rooms", float("inf")),
        ):
            with self.subTest(field=field, value=value):
                with self.assertRaises(ValidationError):
                    Property.from_payload(property_payload(**{field: value}), "10001")

    def test_numeric_strings_accepted(self):
        prop = Property.from_payload(property_payload(price="95000", area="42.5", rooms="2"), "1")

        self.assertEqual(prop.price, 95000)
        self.assertEqual(prop.area, 42.5)
        self.assertEqual(prop.rooms, 2)

    def test_unknown_enum_value(self):
        with self.assertRaises(ValidationError):
            Property.from_payload(property_payload(type="castle"), "1")

    def test_unknown_field_rejected(self):
        with self.assertRaises(ValidationError):
            Property.from_payload(property_payload(colour="red"), "1")

    def test_tags_deduplicated(self):
        prop = Property.from_payload(property_payload(tags=["sea", "sea", " view "]), "1")
        self.assertEqual(prop.tags, ["sea", "view"])

    def test_patch_returns_new_record(self):
        prop = Property.from_payload(property_payload(), "1")
        updated = prop.apply_patch({"price": 120000})

        self.assertEqual(updated.price, 120000)
        self.assertEqual(prop.price, 100000)
        self.assertEqual(updated.address, prop.address)

    def test_patch_cannot_change_id(self):
        prop = Property.from_payload(property_payload(), "1")
        with self.assertRaises(ValidationError):
            prop.apply_patch({"id": "2"})

    def test_patch_checks_owner_on_merged_record(self):
        prop = Property.from_payload(property_payload(), "1")

        with self.assertRaises(ValidationError):
            prop.apply_patch({"status": "sold"})

        sold = prop.apply_patch({"status": "sold", "owner": "Ivan", "owner_phone": "123"})
        self.assertEqual(sold.status, "sold")

    def test_dict_round_trip(self):
        prop = Property.from_payload(property_payload(tags=["a"], rooms=3), "1")
        self.assertEqual(Property.from_dict(prop.to_dict()), prop)


class TestClientAndShowingValidation(unittest.TestCase):
    """Client and showing rules"""

    def test_client_requires_name_and_phone(self):
        with self.assertRaises(ValidationError):
            Client.from_payload({"name": "Olga"}, "CLI-001")
        with self.assertRaises(ValidationError):
            Client.from_payload({"phone": "123"}, "CLI-001")

    def test_client_defaults(self):
        client = Client.from_payload({"name": "Olga", "phone": "123"}, "CLI-001")

        self.assertEqual(client.call_status, "not_called")
        self.assertEqual(client.type, "buyer")
        self.assertEqual(client.status, "active")

    def test_client_patch_keeps_other_fields(self):
        client = Client.from_payload({"name": "Olga", "phone": "123", "budget": "50k"}, "CLI-001")
        updated = client.apply_patch({"call_status": "reached"})

        self.assertEqual(updated.call_status, "reached")
        self.assertEqual(updated.name, "Olga")
        self.assertEqual(updated.budget, "50k")

    def test_showing_date_and_time_format(self):
        showing = Showing.from_payload({"date": "2026-11-02", "time": "14:30"}, "SHW-001", "1")
        self.assertEqual(showing.sort_key, ("2026-11-02", "14:30"))

        for payload in (
            {"date": "02.11.2026", "time": "14:30"},
            {"date": "2026-11-02", "time": "2pm"},
            {"time": "14:30"},
        ):
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError):
                    Showing.from_payload(payload, "SHW-001", "1")

    def test_profile_patch_rejects_password_hash(self):
        user = UserRecord(username="admin", password_hash="$2b$hash")
        with self.assertRaises(ValidationError):
            user.apply_profile({"password_hash": "x"})

    def test_public_profile_hides_hash(self):
        user = UserRecord(username="admin", password_hash="$2b$hash", display_name="Admin")
        self.assertNotIn("password_hash", user.to_public_dict())


class TestPropertyFilter(unittest.TestCase):
    """Property search predicates"""

    def setUp(self):
        self.flat = Property.from_payload(
            property_payload(address="5 Lake Rd", district="Podil", rooms=2, price=80000, area=40),
            "OBJ-001",
        )
        self.house = Property.from_payload(
            property_payload(address="1 Hill Ave", district="Obolon", type="house",
                             rooms=5, price=300000, area=150),
            "OBJ-002",
        )

    def matching(self, **query):
        criteria = PropertyFilter.from_query(query)
        return [p.id for p in (self.flat, self.house) if criteria.matches(p)]

    def test_empty_filter_matches_all(self):
        self.assertEqual(self.matching(), ["OBJ-001", "OBJ-002"])

    def test_search_is_case_insensitive(self):
        self.assertEqual(self.matching(search="LAKE"), ["OBJ-001"])
        self.assertEqual(self.matching(search="obj-002"), ["OBJ-002"])
        self.assertEqual(self.matching(search="podil"), ["OBJ-001"])

    def test_rooms_four_means_four_or_more(self):
        self.assertEqual(self.matching(rooms="4"), ["OBJ-002"])
        self.assertEqual(self.matching(rooms="2"), ["OBJ-001"])
        self.assertEqual(self.matching(rooms="all"), ["OBJ-001", "OBJ-002"])

    def test_price_and_area_ranges(self):
        self.assertEqual(self.matching(min_price="100000"), ["OBJ-002"])
        self.assertEqual(self.matching(max_area="50"), ["OBJ-001"])

    def test_type_and_status(self):
        self.assertEqual(self.matching(type="house"), ["OBJ-002"])
        self.assertEqual(self.matching(status="all", type="all"), ["OBJ-001", "OBJ-002"])
        self.assertEqual(self.matching(status="sold"), [])

    def test_bad_number_rejected(self):
        with self.assertRaises(ValidationError):
            PropertyFilter.from_query({"min_price": "cheap"})

    def test_non_finite_bounds_rejected(self):
        for query in ({"rooms": "inf"}, {"min_price": "nan"}, {"max_area": "Infinity"}):
            with self.subTest(query=query):
                with self.assertRaises(ValidationError):
                    PropertyFilter.from_query(query)


if __name__ == "__main__":
    unittest.main()
