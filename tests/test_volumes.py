import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from spancopy.errors import NoVolumeAvailableError
from spancopy.volumes import (
    ConsoleVolumeSource,
    QueuedVolumeSource,
    ensure_space,
    free_bytes,
    has_enough_space,
)

MB = 1024**2
GB = 1024**3


class TestSpaceChecks(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.vol_a = Path(self.tmp.name) / "A"
        self.vol_b = Path(self.tmp.name) / "B"
        self.vol_a.mkdir()
        self.vol_b.mkdir()
        self.free = {self.vol_a: 10 * GB, self.vol_b: 10 * GB}

    def tearDown(self):
        self.tmp.cleanup()

    def free_space(self, volume):
        return self.free[volume]

    def test_free_bytes_uses_disk_usage(self):
        with patch("spancopy.volumes.psutil.disk_usage") as disk_usage:
            disk_usage.return_value.free = 1234
            self.assertEqual(free_bytes(self.vol_a), 1234)
            disk_usage.assert_called_once_with(str(self.vol_a))

    def test_buffer_counts_against_free_space(self):
        self.free[self.vol_a] = 100
        self.assertTrue(has_enough_space(self.vol_a, 60, 40, self.free_space))
        self.assertFalse(has_enough_space(self.vol_a, 61, 40, self.free_space))

    def test_current_volume_kept_when_it_fits(self):
        source = QueuedVolumeSource([self.vol_b])
        volume, replaced = ensure_space(10, 100 * MB, self.vol_a, source, self.free_space)
        self.assertEqual(volume, self.vol_a)
        self.assertFalse(replaced)
        self.assertEqual(source.prompts, [])

    def test_full_volume_is_replaced_before_writing(self):
        self.free[self.vol_a] = int(4.9 * GB)
        source = QueuedVolumeSource([self.vol_b])

        volume, replaced = ensure_space(5 * GB, 100 * MB, self.vol_a, source, self.free_space)

        self.assertEqual(volume, self.vol_b)
        self.assertTrue(replaced)
        self.assertEqual(len(source.prompts), 1)

    def test_prompts_again_while_replacement_is_too_small(self):
        vol_c = Path(self.tmp.name) / "C"
        vol_c.mkdir()
        self.free[self.vol_a] = 0
        self.free[self.vol_b] = 50
        self.free[vol_c] = 1000
        source = QueuedVolumeSource([self.vol_b, vol_c])

        volume, replaced = ensure_space(100, 10, self.vol_a, source, self.free_space)

        self.assertEqual(volume, vol_c)
        self.assertTrue(replaced)
        self.assertEqual(len(source.prompts), 2)

    def test_unreadable_volume_counts_as_full(self):
        def unplugged(volume):
            raise FileNotFoundError(2, "No such file or directory", str(volume))

        with self.assertLogs(level="WARNING"):
            self.assertFalse(has_enough_space(self.vol_a, 1, 0, unplugged))

    def test_unplugged_volume_is_replaced(self):
        def free_space(volume):
            if volume == self.vol_a:
                raise FileNotFoundError(2, "No such file or directory", str(volume))
            return self.free[volume]

        volume, replaced = ensure_space(10, 0, self.vol_a, QueuedVolumeSource([self.vol_b]), free_space)

        self.assertEqual(volume, self.vol_b)
        self.assertTrue(replaced)

    def test_giving_up_after_a_swap_reports_last_volume(self):
        self.free[self.vol_a] = 0
        self.free[self.vol_b] = 5

        with self.assertRaises(NoVolumeAvailableError) as raised:
            ensure_space(10, 0, self.vol_a, QueuedVolumeSource([self.vol_b]), self.free_space)

        self.assertEqual(raised.exception.last_volume, self.vol_b)

    def test_giving_up_without_a_swap_has_no_last_volume(self):
        self.free[self.vol_a] = 0
        with self.assertRaises(NoVolumeAvailableError) as raised:
            ensure_space(10, 0, self.vol_a, QueuedVolumeSource([]), self.free_space)
        self.assertIsNone(raised.exception.last_volume)

    def test_exhausted_queue_raises(self):
        self.free[self.vol_a] = 0
        with self.assertRaises(NoVolumeAvailableError):
            ensure_space(1, 0, self.vol_a, QueuedVolumeSource([]), self.free_space)


class TestQueuedVolumeSource(unittest.TestCase):
    def test_skips_unmounted_volumes(self):
        with tempfile.TemporaryDirectory() as tmp:
            source = QueuedVolumeSource([Path(tmp) / "not-there", tmp])
            with self.assertLogs(level="WARNING"):
                self.assertEqual(source.request_volume("next"), Path(tmp))


class TestConsoleVolumeSource(unittest.TestCase):
    def test_reprompts_until_directory_given(self):
        with tempfile.TemporaryDirectory() as tmp:
            answers = iter(["", str(Path(tmp) / "missing"), f'"{tmp}"'])
            prompts = []

            def fake_input(prompt):
                prompts.append(prompt)
                return next(answers)

            with patch("builtins.print"):
                volume = ConsoleVolumeSource(input_func=fake_input).request_volume("Insert volume")

            self.assertEqual(volume, Path(tmp))
            self.assertEqual(prompts, ["Insert volume: "] * 3)

    def test_bounded_attempts_give_up(self):
        source = ConsoleVolumeSource(input_func=lambda prompt: "/definitely/not/mounted", max_attempts=2)
        with patch("builtins.print"), self.assertRaises(NoVolumeAvailableError):
            source.request_volume("Insert volume")


if __name__ == "__main__":
    unittest.main()
