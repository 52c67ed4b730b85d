import asyncio
import unittest
from unittest.mock import Mock

from habit_tracker.core.models import AuthorizationError, FetchError, PendingOperationError, ValidationError
from habit_tracker.services.completion_service import CompletionStore

from tests.fakes import OWNER, TODAY, FakeRemoteStore, settle

YESTERDAY = "2024-05-31"
TWO_DAYS_AGO = "2024-05-30"

class CompletionStoreTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.remote = FakeRemoteStore()
        self.remote.put_habit("a", "Read", 0)
        self.remote.put_habit("b", "Run", 1)
        await self.remote.insert_completion(OWNER, "a", YESTERDAY)
        await self.remote.insert_completion(OWNER, "b", TWO_DAYS_AGO)

        self.haptics = Mock()
        self.store = CompletionStore(self.remote, haptics=self.haptics)
        result = await self.store.load_for_date(OWNER, TODAY)
        self.assertTrue(result.ok)
        self.remote.calls.clear()

class TestLoadForDate(CompletionStoreTestCase):
    async def test_loads_only_requested_day(self) -> None:
        result = await self.store.load_for_date(OWNER, YESTERDAY)
        self.assertTrue(result.ok)
        self.assertEqual(self.store.active_date, YESTERDAY)
        self.assertEqual(self.store.done_habit_ids(), frozenset({"a"}))
        self.assertFalse(self.store.loading)

    async def test_switch_clears_set_before_response(self) -> None:
        await self.store.load_for_date(OWNER, YESTERDAY)
        gate = self.remote.hold("list_completions")
        task = asyncio.create_task(self.store.load_for_date(OWNER, TWO_DAYS_AGO))
        await settle()

        self.assertEqual(self.store.active_date, TWO_DAYS_AGO)
        self.assertEqual(self.store.completions, ())
        self.assertTrue(self.store.loading)

        gate.set()
        await task
        self.assertEqual(self.store.done_habit_ids(), frozenset({"b"}))

    async def test_late_response_for_previous_day_is_discarded(self) -> None:
        gate = self.remote.hold("list_completions", when=lambda args: args[1] == YESTERDAY)
        first = asyncio.create_task(self.store.load_for_date(OWNER, YESTERDAY))
        await settle()

        await self.store.load_for_date(OWNER, TWO_DAYS_AGO)
        gate.set()
        await first

        self.assertEqual(self.store.active_date, TWO_DAYS_AGO)
        self.assertEqual(self.store.done_habit_ids(), frozenset({"b"}))

    async def test_failure(self) -> None:
        self.remote.fail("list_completions")
        result = await self.store.load_for_date(OWNER, YESTERDAY)
        self.assertIsInstance(result.error, FetchError)
        self.assertFalse(self.store.loading)
        self.assertEqual(self.store.completions, ())

    async def test_invalid_date(self) -> None:
        result = await self.store.load_for_date(OWNER, "yesterday")
        self.assertIsInstance(result.error, ValidationError)
        self.assertEqual(self.remote.calls, [])

class TestLoadForRange(CompletionStoreTestCase):
    async def test_range_is_read_only(self) -> None:
        result = await self.store.load_for_range(OWNER, TWO_DAYS_AGO, TODAY)
        self.assertTrue(result.ok)
        self.assertEqual([(c.habit_id, c.date) for c in result.value],
                         [("b", TWO_DAYS_AGO), ("a", YESTERDAY)])
        self.assertEqual(self.store.active_date, TODAY.isoformat())
        self.assertEqual(self.store.completions, ())

    async def test_reversed_range(self) -> None:
        result = await self.store.load_for_range(OWNER, TODAY, YESTERDAY)
        self.assertIsInstance(result.error, ValidationError)
        self.assertEqual(self.remote.calls, [])

class TestToggle(CompletionStoreTestCase):
    async def test_toggle_on_is_optimistic(self) -> None:
        gate = self.remote.hold("insert_completion")
        task = asyncio.create_task(self.store.toggle(OWNER, "a", TODAY))
        await settle()

        self.assertTrue(self.store.is_done("a"))
        self.assertTrue(self.store.is_cell_pending("a"))
        self.assertTrue(self.store.completions[0].provisional)
        self.haptics.assert_called_once()

        gate.set()
        result = await task
        self.assertTrue(result.ok)
        self.assertTrue(result.value)
        self.assertFalse(self.store.is_cell_pending("a"))
        self.assertFalse(self.store.completions[0].provisional)
        self.assertEqual(self.remote.completion_count(OWNER, "a", TODAY), 1)

    async def test_toggle_off(self) -> None:
        await self.store.load_for_date(OWNER, YESTERDAY)
        result = await self.store.toggle(OWNER, "a", YESTERDAY)

        self.assertTrue(result.ok)
        self.assertFalse(result.value)
        self.assertFalse(self.store.is_done("a"))
        self.assertEqual(self.remote.completion_count(OWNER, "a", YESTERDAY), 0)

    async def test_second_toggle_while_pending_is_rejected(self) -> None:
        gate = self.remote.hold("insert_completion")
        first = asyncio.create_task(self.store.toggle(OWNER, "a", TODAY))
        await settle()

        second = await self.store.toggle(OWNER, "a", TODAY)
        self.assertIsInstance(second.error, PendingOperationError)
        self.assertEqual(second.error.habit_id, "a")

        gate.set()
        await first
        self.assertTrue(self.store.is_done("a"))
        self.assertEqual(self.remote.completion_count(OWNER, "a", TODAY), 1)

    async def test_other_habit_can_toggle_meanwhile(self) -> None:
        gate = self.remote.hold("insert_completion", when=lambda args: args[1] == "a")
        first = asyncio.create_task(self.store.toggle(OWNER, "a", TODAY))
        await settle()

        result = await self.store.toggle(OWNER, "b", TODAY)
        self.assertTrue(result.ok)

        gate.set()
        await first
        self.assertEqual(self.store.done_habit_ids(), frozenset({"a", "b"}))

    async def test_failure_reloads_server_state(self) -> None:
        self.remote.fail("insert_completion")
        result = await self.store.toggle(OWNER, "a", TODAY)

        self.assertIsInstance(result.error, FetchError)
        self.assertFalse(self.store.is_done("a"))
        self.assertFalse(self.store.is_cell_pending("a"))
        self.assertEqual(len(self.remote.calls_to("list_completions")), 1)

    async def test_failure_keeps_what_server_has(self) -> None:
        await self.store.load_for_date(OWNER, YESTERDAY)
        self.remote.fail("delete_completion")

        result = await self.store.toggle(OWNER, "a", YESTERDAY)
        self.assertFalse(result.ok)
        self.assertTrue(self.store.is_done("a"))

    async def test_reverts_cell_when_reload_also_fails(self) -> None:
        self.remote.fail("insert_completion")
        self.remote.fail("list_completions")

        result = await self.store.toggle(OWNER, "a", TODAY)
        self.assertFalse(result.ok)
        self.assertFalse(self.store.is_done("a"))

    async def test_reload_during_toggle_keeps_local_cell(self) -> None:
        gate = self.remote.hold("insert_completion")
        task = asyncio.create_task(self.store.toggle(OWNER, "a", TODAY))
        await settle()

        await self.store.load_for_date(OWNER, TODAY)
        self.assertTrue(self.store.is_done("a"))

        gate.set()
        await task
        self.assertTrue(self.store.is_done("a"))

    async def test_date_round_trip_during_toggle_on(self) -> None:
        gate = self.remote.hold("insert_completion")
        task = asyncio.create_task(self.store.toggle(OWNER, "b", TODAY))
        await settle()

        await self.store.load_for_date(OWNER, YESTERDAY)
        await self.store.load_for_date(OWNER, TODAY)
        self.assertTrue(self.store.is_done("b"))

        gate.set()
        result = await task
        self.assertTrue(result.value)
        self.assertTrue(self.store.is_done("b"))
        self.assertFalse(self.store.completions[0].provisional)
        self.assertEqual(self.remote.completion_count(OWNER, "b", TODAY), 1)

    async def test_date_round_trip_during_toggle_off(self) -> None:
        await self.store.load_for_date(OWNER, YESTERDAY)
        gate = self.remote.hold("delete_completion")
        task = asyncio.create_task(self.store.toggle(OWNER, "a", YESTERDAY))
        await settle()

        await self.store.load_for_date(OWNER, TWO_DAYS_AGO)
        await self.store.load_for_date(OWNER, YESTERDAY)
        self.assertFalse(self.store.is_done("a"))

        gate.set()
        self.assertTrue((await task).ok)
        self.assertFalse(self.store.is_done("a"))
        self.assertEqual(self.remote.completion_count(OWNER, "a", YESTERDAY), 0)

    async def test_toggle_for_other_owner_is_rejected(self) -> None:
        result = await self.store.toggle("user-2", "a", TODAY)
        self.assertIsInstance(result.error, AuthorizationError)
        self.assertFalse(self.store.is_done("a"))
        self.assertEqual(self.remote.calls, [])

    async def test_toggle_for_other_date_is_rejected(self) -> None:
        result = await self.store.toggle(OWNER, "a", YESTERDAY)
        self.assertIsInstance(result.error, ValidationError)
        self.assertEqual(self.remote.calls, [])

    async def test_broken_haptics_is_ignored(self) -> None:
        self.haptics.side_effect = RuntimeError("no vibration motor")
        result = await self.store.toggle(OWNER, "a", TODAY)
        self.assertTrue(result.ok)

class TestForgetHabit(CompletionStoreTestCase):
    async def test_forget_removes_cached_completion(self) -> None:
        await self.store.load_for_date(OWNER, YESTERDAY)
        snapshots = []
        self.store.subscribe(snapshots.append)

        self.store.forget_habit("a")
        self.assertFalse(self.store.is_done("a"))
        self.assertEqual(snapshots, [()])

        self.store.forget_habit("a")
        self.assertEqual(len(snapshots), 1)

if __name__ == "__main__":
    unittest.main()
