import unittest

from habit_tracker.core.models import ValidationError
from habit_tracker.core.reorder import move_before_target, move_item

class TestMoveItem(unittest.TestCase):
    def test_move_down(self) -> None:
        self.assertEqual(move_item(["a", "b", "c", "d"], 0, 2), ["b", "c", "a", "d"])

    def test_move_up(self) -> None:
        self.assertEqual(move_item(["a", "b", "c", "d"], 3, 1), ["a", "d", "b", "c"])

    def test_same_index_keeps_order(self) -> None:
        self.assertEqual(move_item(["a", "b"], 1, 1), ["a", "b"])

    def test_input_is_not_mutated(self) -> None:
        ids = ["a", "b", "c"]
        move_item(ids, 0, 2)
        self.assertEqual(ids, ["a", "b", "c"])

    def test_out_of_range(self) -> None:
        with self.assertRaises(ValidationError):
            move_item(["a", "b"], 2, 0)
        with self.assertRaises(ValidationError):
            move_item(["a", "b"], 0, -1)
        with self.assertRaises(ValidationError):
            move_item([], 0, 0)

class TestMoveBeforeTarget(unittest.TestCase):
    def test_drop_on_earlier_target(self) -> None:
        self.assertEqual(move_before_target(["a", "b", "c"], "c", "a"), ["c", "a", "b"])

    def test_drop_on_later_target(self) -> None:
        self.assertEqual(move_before_target(["a", "b", "c"], "a", "c"), ["b", "c", "a"])

    def test_drop_on_itself(self) -> None:
        self.assertEqual(move_before_target(["a", "b"], "a", "a"), ["a", "b"])

    def test_unknown_id(self) -> None:
        with self.assertRaises(ValidationError):
            move_before_target(["a", "b"], "x", "a")

if __name__ == "__main__":
    unittest.main()
