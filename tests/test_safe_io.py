import json
import tempfile
import unittest
from pathlib import Path

from result_filter.io.fs import read_json, read_json_object, write_json_atomic, write_text_atomic


class TestSafeIO(unittest.TestCase):
    def test_write_json_is_atomic_and_cleans_temp(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            out_dir = root / "out" / "nested"
            out_path = out_dir / "filtered.json"

            payload = {"vulnerabilities": [{"VulnerabilityID": "CVE-1"}], "ok": True, "none": None}
            write_json_atomic(out_path, payload)

            # Parent directories are created and the file is readable
            self.assertTrue(out_path.exists())
            self.assertEqual(payload, read_json(out_path))

            # No temp files left behind on success
            self.assertEqual([], list(out_dir.glob("*.tmp")))

    def test_write_json_keeps_key_order_unless_asked(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "x.json"

            write_json_atomic(out_path, {"b": 1, "a": 2})
            self.assertEqual(["b", "a"], list(json.loads(out_path.read_text(encoding="utf-8"))))

            write_json_atomic(out_path, {"b": 1, "a": 2}, sort_keys=True)
            self.assertEqual(["a", "b"], list(json.loads(out_path.read_text(encoding="utf-8"))))

    def test_failed_write_leaves_previous_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "state.json"
            write_json_atomic(out_path, {"v": 1})

            with self.assertRaises(TypeError):
                write_json_atomic(out_path, {"v": object()})

            self.assertEqual({"v": 1}, read_json(out_path))
            self.assertEqual([], list(Path(td).glob("*.tmp")))

    def test_read_json_object(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            good = Path(td) / "good.json"
            write_json_atomic(good, {"secrets": []})
            self.assertEqual({"secrets": []}, read_json_object(good))

            bad = Path(td) / "list.json"
            write_json_atomic(bad, [1, 2])
            with self.assertRaises(ValueError):
                read_json_object(bad)

    def test_write_text_atomic(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            out_path = Path(td) / "note.txt"
            write_text_atomic(out_path, "héllo\n")
            self.assertEqual("héllo\n", out_path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
