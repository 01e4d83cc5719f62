import asyncio
import unittest

from catalog_admin.application.coordinator import InMemoryModal, ModalCoordinator, ModalState, SaveStatus
from catalog_admin.application.forms import ColorPreview, FieldMapper, InMemoryForm
from catalog_admin.application.handlers import KindHandlers, build_kind_handlers
from catalog_admin.application.lookup_cache import LookupCache
from catalog_admin.application.signals import ChangeFeed, Severity
from catalog_admin.domain.catalog.models import Handle, Rail
from catalog_admin.domain.catalog.repositories import GlassRepository, HandleRepository, RailRepository
from catalog_admin.domain.errors import BackendErrorCode, SessionBusy, UnknownKind
from catalog_admin.domain.identity import DisplayInfo
from catalog_admin.domain.identity.directory import UserDirectory
from catalog_admin.domain.kinds import EntityKind
from catalog_admin.domain.results import RepositoryResult

from fakes import ACTOR_ID, FakeActorStore, FakeDataService, make_actor


class FakeEvent:
    def __init__(self):
        self.prevented = False

    def prevent_default(self):
        self.prevented = True


class GatedLookup:
    def __init__(self):
        self.gate = asyncio.Event()

    async def display_info(self, user_id):
        await self.gate.wait()
        return DisplayInfo(name="Ana", email="ana@example.com")


class BrokenLookup:
    async def display_info(self, user_id):
        raise ConnectionResetError("peer reset")


class CoordinatorTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.data = FakeDataService({"usuarios": [{"id": ACTOR_ID, "nome": "Ana", "email": "ana@example.com"}]})
        self.feed = ChangeFeed()
        self.changes: list[EntityKind] = []
        self.notifications = []
        self.closed = []
        self.feed.on_kind_changed(self.changes.append)
        self.feed.on_notification(self.notifications.append)
        self.feed.on_modal_closed(lambda: self.closed.append(True))

        actors = FakeActorStore(make_actor())
        users = UserDirectory(self.data)
        self.repositories = {
            repo_cls.kind: repo_cls(
                self.data,
                actors=actors,
                users=users if repo_cls.owned else None,
                on_change=self.feed.kind_changed,
            )
            for repo_cls in (HandleRepository, RailRepository, GlassRepository)
        }
        self.form = InMemoryForm()
        self.preview = ColorPreview()
        self.modal = InMemoryModal()
        self.coordinator = ModalCoordinator(
            FieldMapper(self.form, preview=self.preview),
            feed=self.feed,
            modal=self.modal,
        )
        self.coordinator.register_all(
            build_kind_handlers(self.repositories, lookup=LookupCache(users), preview=self.preview)
        )

    def errors(self) -> list[str]:
        return [n.message for n in self.notifications if n.severity == Severity.ERROR]


class OpenCloseTests(CoordinatorTestCase):
    async def test_open_then_close_for_every_kind(self):
        for kind in EntityKind:
            with self.subTest(kind=kind):
                session = await self.coordinator.open(kind)
                self.assertEqual(session.kind, kind)
                self.assertEqual(self.coordinator.state, ModalState.OPEN)
                self.assertTrue(self.modal.visible)
                self.assertEqual(self.modal.title, f"New {kind.label}")

                self.assertTrue(self.coordinator.close())
                self.assertEqual(self.coordinator.state, ModalState.CLOSED)
                self.assertIsNone(self.coordinator.session)
                self.assertFalse(self.modal.visible)
        self.assertEqual(len(self.closed), 3)

    async def test_open_for_edit_populates_and_shows_owner(self):
        rail = Rail(name="RO-654025", rail_type="Embutir", owner_id=ACTOR_ID, id="4")
        await self.coordinator.open("rail", rail)

        self.assertEqual(self.modal.title, "Edit Rail")
        self.assertIn("Ana", self.modal.caption)
        self.assertEqual(self.form.get_value("item_model"), "RO-654025")
        self.assertEqual(self.form.get_value("item_size"), "Embutir")
        self.assertEqual(self.form.get_value("item_id"), "4")

    async def test_open_unknown_kind(self):
        with self.assertRaises(UnknownKind):
            await self.coordinator.open("door")

    async def test_reopen_replaces_session(self):
        await self.coordinator.open("handle", Handle(model="Cielo", size="150mm", id="1"))
        session = await self.coordinator.open("glass")

        self.assertIs(self.coordinator.session, session)
        self.assertEqual(self.form.get_value("item_model"), "")
        self.assertFalse(self.form.is_visible("item_size"))

    async def test_close_without_session_is_rejected(self):
        self.assertFalse(self.coordinator.close())
        self.assertEqual(self.closed, [])

    async def test_force_close_is_idempotent(self):
        await self.coordinator.open("glass")
        self.form.set_value("item_model", "Incolor")

        self.coordinator.force_close()
        self.coordinator.force_close()

        self.assertEqual(self.coordinator.state, ModalState.FORCED_CLOSED)
        self.assertIsNone(self.coordinator.session)
        self.assertEqual(self.form.get_value("item_model"), "")
        self.assertFalse(self.modal.visible)
        self.assertEqual(self.modal.force_hidden, 1)
        self.assertEqual(len(self.closed), 1)

        await self.coordinator.open("glass")
        self.assertEqual(self.coordinator.state, ModalState.OPEN)

    def rebuild_with_lookup(self, lookup) -> ModalCoordinator:
        coordinator = ModalCoordinator(FieldMapper(self.form, preview=self.preview), feed=self.feed, modal=self.modal)
        coordinator.register_all(
            build_kind_handlers(self.repositories, lookup=LookupCache(lookup), preview=self.preview)
        )
        return coordinator

    async def test_modal_shows_before_owner_resolves(self):
        lookup = GatedLookup()
        coordinator = self.rebuild_with_lookup(lookup)
        rail = Rail(name="RO-654025", owner_id=ACTOR_ID, id="4")

        pending = asyncio.create_task(coordinator.open("rail", rail))
        await asyncio.sleep(0)
        self.assertTrue(self.modal.visible)
        self.assertEqual(self.modal.title, "Edit Rail")
        self.assertIsNone(self.modal.caption)

        lookup.gate.set()
        await pending
        self.assertIn("Ana", self.modal.caption)

    async def test_caption_is_dropped_when_modal_closes_first(self):
        lookup = GatedLookup()
        coordinator = self.rebuild_with_lookup(lookup)

        handle = Handle(model="Cielo", size="150mm", owner_id=ACTOR_ID, id="1")

        pending = asyncio.create_task(coordinator.open("handle", handle))
        await asyncio.sleep(0)
        self.assertTrue(coordinator.close())
        lookup.gate.set()
        await pending

        self.assertFalse(self.modal.visible)
        self.assertIsNone(self.modal.caption)
        self.assertIsNone(coordinator.session)

    async def test_owner_lookup_crash_still_opens_with_retry(self):
        coordinator = self.rebuild_with_lookup(BrokenLookup())

        with self.assertLogs("catalog_admin.application.lookup_cache", level="ERROR"):
            await coordinator.open("handle", Handle(model="Cielo", size="150mm", owner_id=ACTOR_ID, id="1"))

        self.assertEqual(coordinator.state, ModalState.OPEN)
        self.assertIsNotNone(coordinator.session)
        self.assertTrue(self.modal.visible)
        self.assertIn("Error: peer reset", self.modal.caption)
        self.assertIn("owner-retry", self.modal.caption)

    def test_duplicate_registration(self):
        handlers = KindHandlers(
            kind=EntityKind.GLASS,
            save=self.repositories[EntityKind.GLASS].create,
            delete=self.repositories[EntityKind.GLASS].delete,
            validate=lambda fields: [],
        )
        with self.assertRaises(ValueError):
            self.coordinator.register(handlers)


class SaveTests(CoordinatorTestCase):
    async def test_save_without_session_is_a_no_op(self):
        event = FakeEvent()
        outcome = await self.coordinator.save(event)

        self.assertEqual(outcome.status, SaveStatus.NO_SESSION)
        self.assertIn("no modal session", outcome.messages[0])
        self.assertTrue(event.prevented)
        self.assertEqual(self.notifications, [])
        self.assertEqual(self.data.calls, [])

    async def test_invalid_form_stays_open(self):
        await self.coordinator.open("handle")
        self.form.set_value("item_model", "Cielo")

        outcome = await self.coordinator.save()

        self.assertEqual(outcome.status, SaveStatus.INVALID)
        self.assertEqual(self.errors(), ['Field "Size" is required'])
        self.assertEqual(self.coordinator.state, ModalState.OPEN)
        self.assertTrue(self.modal.visible)
        self.assertEqual(self.data.calls, [])

    async def test_glass_create_scenario(self):
        await self.coordinator.open("glass")
        self.form.set_value("item_model", "Incolor")

        outcome = await self.coordinator.save(FakeEvent())

        self.assertEqual(outcome.status, SaveStatus.SAVED)
        inserts = [call for call in self.data.calls if call[0] == "insert"]
        self.assertEqual(inserts, [("insert", "pv_vidro", {"tipo": "Incolor", "rgb": "255,255,255,0.3", "ativo": True})])
        self.assertEqual(self.changes, [EntityKind.GLASS])
        self.assertEqual(self.coordinator.state, ModalState.CLOSED)
        self.assertIsNone(self.coordinator.session)
        self.assertFalse(self.modal.visible)
        self.assertEqual(self.notifications[-1].severity, Severity.SUCCESS)
        self.assertEqual(self.notifications[-1].message, "Glass created successfully.")

    async def test_edit_routes_to_update(self):
        self.data.tables["puxadores"] = [{"id": "1", "nome": "Cielo", "modelo": "Cielo", "medida": "150mm"}]
        await self.coordinator.open("handle", Handle(model="Cielo", size="150mm", id="1"))
        self.form.set_value("item_size", "200mm")

        outcome = await self.coordinator.save()

        self.assertEqual(outcome.status, SaveStatus.SAVED)
        self.assertEqual(self.data.tables["puxadores"][0]["medida"], "200mm")
        self.assertEqual([call[0] for call in self.data.calls if call[0] != "select"], ["update"])
        self.assertEqual(self.notifications[-1].message, "Handle updated successfully.")

    async def test_foreign_key_failure_keeps_modal_open(self):
        self.data.fail("insert", "puxadores", BackendErrorCode.FOREIGN_KEY_VIOLATION, "fk", "23503")
        session = await self.coordinator.open("handle")
        self.form.set_value("item_model", "Cielo")
        self.form.set_value("item_size", "150mm")

        outcome = await self.coordinator.save()

        self.assertEqual(outcome.status, SaveStatus.FAILED)
        self.assertEqual(self.coordinator.state, ModalState.OPEN)
        self.assertIs(self.coordinator.session, session)
        self.assertTrue(self.modal.visible)
        self.assertEqual(self.changes, [])
        self.assertIn("sign in again", self.errors()[-1])
        self.assertEqual(self.form.get_value("item_model"), "Cielo")

    async def test_demo_save_warns(self):
        self.data.missing_table("pv_vidro")
        await self.coordinator.open("glass")
        self.form.set_value("item_model", "Laminado")

        outcome = await self.coordinator.save()

        self.assertEqual(outcome.status, SaveStatus.SAVED)
        self.assertTrue(outcome.result.degraded)
        self.assertEqual(self.notifications[-1].severity, Severity.WARNING)


class GatedSaveTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.gate = asyncio.Event()
        self.feed = ChangeFeed()
        self.notifications = []
        self.feed.on_notification(self.notifications.append)
        self.modal = InMemoryModal()
        self.form = InMemoryForm()
        self.coordinator = ModalCoordinator(FieldMapper(self.form), feed=self.feed, modal=self.modal)
        self.saved = []

        async def save(fields):
            self.saved.append(fields)
            await self.gate.wait()
            return RepositoryResult.ok(None)

        async def delete(record_id):
            return RepositoryResult.ok()

        self.coordinator.register(
            KindHandlers(kind=EntityKind.RAIL, save=save, delete=delete, validate=lambda fields: [])
        )

    async def test_reentrant_calls_are_rejected_while_saving(self):
        await self.coordinator.open("rail")
        first = asyncio.create_task(self.coordinator.save())
        await asyncio.sleep(0)
        self.assertEqual(self.coordinator.state, ModalState.SAVING)

        second = await self.coordinator.save()
        self.assertEqual(second.status, SaveStatus.BUSY)
        with self.assertRaises(SessionBusy):
            await self.coordinator.open("rail")
        self.assertFalse(self.coordinator.close())

        self.gate.set()
        self.assertEqual((await first).status, SaveStatus.SAVED)
        self.assertEqual(len(self.saved), 1)
        self.assertEqual(self.coordinator.state, ModalState.CLOSED)

    async def test_force_close_during_save_ignores_late_result(self):
        await self.coordinator.open("rail")
        pending = asyncio.create_task(self.coordinator.save())
        await asyncio.sleep(0)

        self.coordinator.force_close()
        self.gate.set()
        outcome = await pending

        self.assertEqual(outcome.status, SaveStatus.SAVED)
        self.assertEqual(self.coordinator.state, ModalState.FORCED_CLOSED)
        self.assertIsNone(self.coordinator.session)
        self.assertEqual(self.notifications, [])

    async def test_unexpected_error_restores_open_state(self):
        async def broken(fields):
            raise RuntimeError("bug")

        self.coordinator.register(
            KindHandlers(kind=EntityKind.GLASS, save=broken, delete=broken, validate=lambda fields: [])
        )
        await self.coordinator.open("glass")

        with self.assertRaises(RuntimeError):
            await self.coordinator.save()
        self.assertEqual(self.coordinator.state, ModalState.OPEN)

    async def test_failing_open_hook_rolls_back_session(self):
        async def broken_open(record):
            raise RuntimeError("bug")

        async def delete(record_id):
            return RepositoryResult.ok()

        self.coordinator.register(
            KindHandlers(
                kind=EntityKind.GLASS,
                save=delete,
                delete=delete,
                validate=lambda fields: [],
                open=broken_open,
            )
        )

        with self.assertLogs("catalog_admin.application.coordinator", level="ERROR"):
            with self.assertRaises(RuntimeError):
                await self.coordinator.open("glass")

        self.assertEqual(self.coordinator.state, ModalState.CLOSED)
        self.assertIsNone(self.coordinator.session)
        self.assertFalse(self.modal.visible)

    async def test_delete_notifies_outcome(self):
        result = await self.coordinator.delete("rail", "5")

        self.assertTrue(result.success)
        self.assertEqual(self.notifications[-1].message, "Rail deleted successfully.")
        with self.assertRaises(UnknownKind):
            await self.coordinator.delete("handle", "5")


if __name__ == "__main__":
    unittest.main()
