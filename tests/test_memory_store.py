import json
import tempfile
import unittest
from pathlib import Path

from habit_tracker.core.models import AuthorizationError, FetchError, NotFoundError, ValidationError
from habit_tracker.database.json_store import JsonFileRemoteStore
from habit_tracker.database.memory_store import InMemoryRemoteStore

from tests.fakes import OWNER

class TestInMemoryRemoteStore(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = InMemoryRemoteStore()
        self.habit = await self.store.insert_habit(OWNER, "Read", 0)

    async def test_insert_and_list(self) -> None:
        second = await self.store.insert_habit(OWNER, "Run", 1)
        await self.store.insert_habit("user-2", "Foreign", 0)

        habits = await self.store.list_habits(OWNER)
        self.assertEqual([h.id for h in habits], [self.habit.id, second.id])
        self.assertTrue(all(h.owner_id == OWNER for h in habits))

    async def test_insert_rejects_blank_name(self) -> None:
        with self.assertRaises(ValidationError):
            await self.store.insert_habit(OWNER, "  ", 0)

    async def test_completion_is_unique_per_day(self) -> None:
        await self.store.insert_completion(OWNER, self.habit.id, "2024-06-01")
        await self.store.insert_completion(OWNER, self.habit.id, "2024-06-01")
        self.assertEqual(self.store.completion_count(OWNER, self.habit.id, "2024-06-01"), 1)

        rows = await self.store.list_completions(OWNER, "2024-06-01")
        self.assertEqual([c.habit_id for c in rows], [self.habit.id])

    async def test_delete_missing_completion_is_noop(self) -> None:
        writes = self.store.stats.writes
        await self.store.delete_completion(OWNER, self.habit.id, "2024-06-01")
        self.assertEqual(self.store.stats.writes, writes)

    async def test_delete_habit_cascades(self) -> None:
        await self.store.insert_completion(OWNER, self.habit.id, "2024-06-01")
        await self.store.insert_completion(OWNER, self.habit.id, "2024-05-31")

        await self.store.delete_habit(self.habit.id, OWNER)
        self.assertEqual(await self.store.list_habits(OWNER), [])
        self.assertEqual(await self.store.list_completions_in_range(OWNER, "2024-05-01", "2024-06-30"), [])

    async def test_missing_habit(self) -> None:
        with self.assertRaises(NotFoundError):
            await self.store.update_habit_name("nope", OWNER, "Name")
        with self.assertRaises(NotFoundError):
            await self.store.insert_completion(OWNER, "nope", "2024-06-01")

    async def test_foreign_habit(self) -> None:
        with self.assertRaises(AuthorizationError):
            await self.store.update_habit_sort_order(self.habit.id, "user-2", 3)
        with self.assertRaises(AuthorizationError):
            await self.store.delete_habit(self.habit.id, "user-2")
        self.assertEqual(self.store.stats.rejected, 2)

    async def test_session_owner(self) -> None:
        store = InMemoryRemoteStore(session_owner=OWNER)
        with self.assertRaises(AuthorizationError):
            await store.list_habits("user-2")
        with self.assertRaises(AuthorizationError):
            await store.list_habits("")

    async def test_range_is_inclusive_and_sorted(self) -> None:
        for day in ("2024-06-02", "2024-05-31", "2024-06-01", "2024-05-01"):
            await self.store.insert_completion(OWNER, self.habit.id, day)

        rows = await self.store.list_completions_in_range(OWNER, "2024-05-31", "2024-06-02")
        self.assertEqual([c.date for c in rows], ["2024-05-31", "2024-06-01", "2024-06-02"])

    async def test_round_trip_through_dict(self) -> None:
        await self.store.insert_completion(OWNER, self.habit.id, "2024-06-01")

        copy = InMemoryRemoteStore()
        copy.load_dict(self.store.to_dict())
        self.assertEqual(await copy.list_habits(OWNER), [self.habit])
        self.assertEqual(copy.completion_count(OWNER, self.habit.id, "2024-06-01"), 1)

class TestJsonFileRemoteStore(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self.temp_dir.name) / "habits.json"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    async def test_writes_survive_restart(self) -> None:
        store = JsonFileRemoteStore(self.path)
        habit = await store.insert_habit(OWNER, "Read", 0)
        await store.insert_completion(OWNER, habit.id, "2024-06-01")

        reopened = JsonFileRemoteStore(self.path)
        self.assertEqual([h.name for h in await reopened.list_habits(OWNER)], ["Read"])
        self.assertEqual(reopened.completion_count(OWNER, habit.id, "2024-06-01"), 1)
        self.assertFalse(self.path.with_suffix(".tmp").exists())

    async def test_corrupted_file_is_moved_aside(self) -> None:
        self.path.write_text("{not json", encoding="utf-8")

        with self.assertLogs("habit_tracker.database.json_store", level="ERROR"):
            store = JsonFileRemoteStore(self.path)

        self.assertEqual(await store.list_habits(OWNER), [])
        self.assertFalse(self.path.exists())
        backups = list(Path(self.temp_dir.name).glob("corrupted_backup_*.json"))
        self.assertEqual(len(backups), 1)

    async def test_unexpected_format_is_moved_aside(self) -> None:
        self.path.write_text(json.dumps(["not", "a", "dict"]), encoding="utf-8")
        store = JsonFileRemoteStore(self.path)
        self.assertEqual(store.to_dict(), {"habits": [], "completions": []})
        self.assertFalse(self.path.exists())

    async def test_failed_write_leaves_memory_as_on_disk(self) -> None:
        store = JsonFileRemoteStore(self.path)
        await store.insert_habit(OWNER, "Read", 0)

        # Каталог на месте временного файла не даёт записать данные
        blocker = self.path.with_suffix(".tmp")
        blocker.mkdir()
        with self.assertLogs("habit_tracker.database.json_store", level="ERROR"):
            with self.assertRaises(FetchError):
                await store.insert_habit(OWNER, "Run", 1)
        self.assertEqual([h.name for h in await store.list_habits(OWNER)], ["Read"])

        blocker.rmdir()
        await store.insert_habit(OWNER, "Write", 1)
        reopened = JsonFileRemoteStore(self.path)
        self.assertEqual([h.name for h in await reopened.list_habits(OWNER)], ["Read", "Write"])

if __name__ == "__main__":
    unittest.main()
