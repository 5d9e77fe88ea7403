"""
RecordStore Tests

Module: tests.test_record_store
Date: 2026-10-19
Version: 0.1.0

Covers CRUD per collection, identifier minting, cascade delete,
persistence round trip, transactions and rollback when a write fails.
"""

import dataclasses
import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from estate_crm.core.exceptions import ConflictError, NotFoundError, ValidationError
from estate_crm.persistence.audit_store import AuditLogger
from estate_crm.persistence.json_store import JSONStore, JSONStoreIOError
from estate_crm.persistence.record_store import RecordStore, next_sequential_id
from estate_crm.security.authentication.user_manager import build_default_users


def property_payload(**overrides):
    payload = {
        "id": "10001",
        "address": "12 Garden St",
        "status": "available",
        "price": 100000,
        "area": 50,
    }
    payload.update(overrides)
    return payload


class RecordStoreTestCase(unittest.TestCase):

    def setUp(self):
        """Setup before each test"""
        self.test_dir = tempfile.mkdtemp()
        self.store = self.make_store()
        self.store.load()

    def tearDown(self):
        """Cleanup after each test"""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def make_store(self):
        return RecordStore(self.test_dir, default_users=lambda: build_default_users(4))


class TestSequentialIds(unittest.TestCase):

    def test_first_id(self):
        self.assertEqual(next_sequential_id("CLI", []), "CLI-001")

    def test_follows_highest_suffix(self):
        self.assertEqual(next_sequential_id("CLI", ["CLI-002", "CLI-010", "X-99"]), "CLI-011")

    def test_ignores_foreign_ids(self):
        self.assertEqual(next_sequential_id("OBJ", ["10001", "OBJ-abc"]), "OBJ-001")


class TestProperties(RecordStoreTestCase):

    def test_create_and_get(self):
        prop = self.store.create_property(property_payload())

        self.assertEqual(self.store.require_property("10001"), prop)
        self.assertEqual(len(self.store.list_properties()), 1)

    def test_numeric_id_stored_as_string(self):
        prop = self.store.create_property(property_payload(id=10002))
        self.assertEqual(prop.id, "10002")

    def test_minted_id_when_absent(self):
        payload = property_payload()
        del payload["id"]

        first = self.store.create_property(payload)
        second = self.store.create_property(payload)

        self.assertEqual(first.id, "OBJ-001")
        self.assertEqual(second.id, "OBJ-002")

    def test_blank_id_is_minted(self):
        prop = self.store.create_property(property_payload(id="   "))

        self.assertEqual(prop.id, "OBJ-001")
        self.assertEqual(self.store.require_property("OBJ-001"), prop)

    def test_non_scalar_id_rejected(self):
        with self.assertRaises(ValidationError):
            self.store.create_property(property_payload(id=["10001"]))

    def test_duplicate_id_conflicts_and_keeps_original(self):
        self.store.create_property(property_payload())

        with self.assertRaises(ConflictError):
            self.store.create_property(property_payload(address="Other address"))

        self.assertEqual(self.store.require_property("10001").address, "12 Garden St")
        self.assertEqual(len(self.store.list_properties()), 1)

    def test_sold_without_owner_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.store.create_property(property_payload(status="sold"))
        self.assertEqual(self.store.list_properties(), [])

    def test_update_missing_property(self):
        with self.assertRaises(NotFoundError):
            self.store.update_property("nope", {"price": 1})

    def test_partial_update(self):
        self.store.create_property(property_payload(district="Podil"))
        updated = self.store.update_property("10001", {"price": 99000})

        self.assertEqual(updated.price, 99000)
        self.assertEqual(updated.district, "Podil")
        self.assertEqual(self.store.require_property("10001").price, 99000)

    def test_delete_cascades_showings(self):
        self.store.create_property(property_payload())
        self.store.create_property(property_payload(id="10002"))
        self.store.create_showing("10001", {"date": "2026-11-01", "time": "10:00"})
        self.store.create_showing("10001", {"date": "2026-11-02", "time": "10:00"})
        kept = self.store.create_showing("10002", {"date": "2026-11-03", "time": "10:00"})

        removed, dropped = self.store.delete_property("10001")

        self.assertEqual(removed.id, "10001")
        self.assertEqual(len(dropped), 2)
        self.assertEqual(self.store.list_showings(), [kept])
        self.assertIsNone(self.store.get_property("10001"))

    def test_photos(self):
        self.store.create_property(property_payload())

        self.store.add_photo("10001", "/uploads/10001/a.jpg")
        prop = self.store.add_photo("10001", "/uploads/10001/b.jpg")
        self.assertEqual(prop.photos, ["/uploads/10001/a.jpg", "/uploads/10001/b.jpg"])

        prop = self.store.remove_photo("10001", "/uploads/10001/a.jpg")
        self.assertEqual(prop.photos, ["/uploads/10001/b.jpg"])

        with self.assertRaises(NotFoundError):
            self.store.add_photo("missing", "/uploads/missing/a.jpg")


class TestClientsAndShowings(RecordStoreTestCase):

    def test_client_ids_are_sequential(self):
        first = self.store.create_client({"name": "Olga", "phone": "1"})
        second = self.store.create_client({"name": "Petro", "phone": "2"})

        self.assertEqual((first.id, second.id), ("CLI-001", "CLI-002"))
        self.assertEqual([c.id for c in self.store.list_clients()], ["CLI-001", "CLI-002"])

    def test_update_client_partial(self):
        client = self.store.create_client({"name": "Olga", "phone": "1", "notes": "call after 6"})
        updated = self.store.update_client(client.id, {"status": "completed"})

        self.assertEqual(updated.status, "completed")
        self.assertEqual(updated.name, "Olga")
        self.assertEqual(updated.phone, "1")
        self.assertEqual(updated.notes, "call after 6")

    def test_delete_client(self):
        client = self.store.create_client({"name": "Olga", "phone": "1"})
        self.store.delete_client(client.id)

        with self.assertRaises(NotFoundError):
            self.store.require_client(client.id)
        with self.assertRaises(NotFoundError):
            self.store.delete_client(client.id)

    def test_showing_requires_existing_property(self):
        with self.assertRaises(NotFoundError):
            self.store.create_showing("missing", {"date": "2026-11-01", "time": "10:00"})
        self.assertEqual(self.store.list_showings(), [])

    def test_showings_ordered_by_date_then_time(self):
        self.store.create_property(property_payload())
        self.store.create_showing("10001", {"date": "2026-11-02", "time": "09:00"})
        self.store.create_showing("10001", {"date": "2026-11-01", "time": "15:00"})
        self.store.create_showing("10001", {"date": "2026-11-01", "time": "11:00"})

        slots = [(s.date, s.time) for s in self.store.showings_for_property("10001")]
        self.assertEqual(slots, [
            ("2026-11-01", "11:00"),
            ("2026-11-01", "15:00"),
            ("2026-11-02", "09:00"),
        ])

    def test_showing_scoped_to_its_property(self):
        self.store.create_property(property_payload())
        self.store.create_property(property_payload(id="10002"))
        showing = self.store.create_showing("10001", {"date": "2026-11-01", "time": "10:00"})

        with self.assertRaises(NotFoundError):
            self.store.update_showing("10002", showing.id, {"notes": "x"})
        with self.assertRaises(NotFoundError):
            self.store.delete_showing("10002", showing.id)

        updated = self.store.update_showing("10001", showing.id, {"notes": "bring keys"})
        self.assertEqual(updated.notes, "bring keys")
        self.assertEqual(updated.date, "2026-11-01")


class TestPersistence(RecordStoreTestCase):

    def test_fresh_store_seeds_default_users(self):
        usernames = [u.username for u in self.store.list_users()]

        self.assertEqual(usernames, ["admin", "Elena", "Anna"])
        self.assertTrue(os.path.exists(os.path.join(self.test_dir, "users.json")))

    def test_save_then_load_reproduces_collections(self):
        self.store.create_property(property_payload(tags=["sea"], rooms=2))
        self.store.create_client({"name": "Olga", "phone": "1"})
        self.store.create_showing("10001", {"date": "2026-11-01", "time": "10:00"})

        reloaded = self.make_store()
        reloaded.load()

        self.assertEqual(reloaded.list_properties(), self.store.list_properties())
        self.assertEqual(reloaded.list_clients(), self.store.list_clients())
        self.assertEqual(reloaded.list_showings(), self.store.list_showings())
        self.assertEqual(reloaded.list_users(), self.store.list_users())

    def test_failed_write_leaves_memory_unchanged(self):
        self.store.create_property(property_payload())

        with patch.object(JSONStore, "save", side_effect=JSONStoreIOError("disk full")):
            with self.assertRaises(JSONStoreIOError):
                self.store.create_property(property_payload(id="10002"))
            with self.assertRaises(JSONStoreIOError):
                self.store.delete_property("10001")

        self.assertEqual([p.id for p in self.store.list_properties()], ["10001"])

    def test_transaction_saves_once(self):
        with patch.object(RecordStore, "save", autospec=True) as save:
            with self.store.transaction():
                self.store.create_property(property_payload())
                self.store.create_client({"name": "Olga", "phone": "1"})

        self.assertEqual(save.call_count, 1)
        self.assertEqual(len(self.store.list_properties()), 1)

    def test_transaction_rolls_back_every_change(self):
        with self.assertRaises(RuntimeError):
            with self.store.transaction():
                self.store.create_property(property_payload())
                self.store.create_client({"name": "Olga", "phone": "1"})
                raise RuntimeError("abort")

        self.assertEqual(self.store.list_properties(), [])
        self.assertEqual(self.store.list_clients(), [])

        reloaded = self.make_store()
        reloaded.load()
        self.assertEqual(reloaded.list_properties(), [])

    def test_audit_entry_shares_the_write(self):
        audit_log = AuditLogger(self.store)

        with patch.object(JSONStore, "save", side_effect=JSONStoreIOError("disk full")):
            with self.assertRaises(JSONStoreIOError):
                with self.store.transaction():
                    self.store.create_property(property_payload())
                    audit_log.record("admin", "property_created", "10001")

        self.assertEqual(self.store.list_properties(), [])
        self.assertEqual(self.store.list_actions(), [])

    def test_corrupt_document_degrades_to_empty(self):
        with open(os.path.join(self.test_dir, "clients.json"), "w") as f:
            f.write("not json")

        store = self.make_store()
        with self.assertLogs("persistence.record_store", level="WARNING"):
            store.load()

        self.assertEqual(store.list_clients(), [])
        self.assertEqual(len(store.list_users()), 3)

    def test_documents_are_json_lists(self):
        self.store.create_client({"name": "Olga", "phone": "1"})

        with open(os.path.join(self.test_dir, "clients.json"), encoding="utf-8") as f:
            data = json.load(f)

        self.assertEqual(data[0]["id"], "CLI-001")
        self.assertEqual(data[0]["name"], "Olga")

    def test_clear_all_keeps_users(self):
        self.store.create_property(property_payload())
        self.store.create_client({"name": "Olga", "phone": "1"})
        self.store.create_showing("10001", {"date": "2026-11-01", "time": "10:00"})

        removed = self.store.clear_all()

        self.assertEqual(removed["properties"], 1)
        self.assertEqual(removed["clients"], 1)
        self.assertEqual(removed["showings"], 1)
        counts = self.store.counts()
        self.assertEqual(counts["properties"], 0)
        self.assertEqual(counts["users"], 3)


class TestUsers(RecordStoreTestCase):

    def test_duplicate_username_conflicts(self):
        admin = self.store.get_user("admin")
        with self.assertRaises(ConflictError):
            self.store.add_user(admin)

    def test_replace_missing_user(self):
        ghost = dataclasses.replace(self.store.get_user("admin"), username="ghost")
        with self.assertRaises(NotFoundError):
            self.store.replace_user(ghost)


if __name__ == "__main__":
    unittest.main()
