#!/usr/bin/env python3
"""
測試命令列執行腳本
"""
import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from datetime import datetime, timedelta
from unittest.mock import patch

import run_monitor
from monitor.models import FetchResult, RawObservation


PRESET = """<html><body><table>
<tr data-type="ModContainer">
  <td data-type="DisplayName">CBA_A3</td>
  <td><a href="https://steamcommunity.com/sharedfiles/filedetails/?id=450814997" data-type="Link">link</a></td>
</tr>
</table></body></html>"""


class StaticFetcher:
    def __init__(self, raw_date_text):
        self.raw_date_text = raw_date_text

    def fetch(self, item_id):
        return FetchResult(
            status_code=200,
            body_text="Change Notes",
            observation=RawObservation(self.raw_date_text, "Fixed bug", "CBA_A3"),
        )

    def close(self):
        pass


class TestRunMonitor(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.data_dir = os.path.join(self.tmpdir.name, "data")
        os.makedirs(self.data_dir)
        with open(os.path.join(self.data_dir, "preset.html"), "w", encoding="utf-8") as f:
            f.write(PRESET)

        self.config_path = os.path.join(self.tmpdir.name, "monitor.json")
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump({"stagger_interval_seconds": 0, "jitter_max_seconds": 0, "max_workers": 1}, f)

    def tearDown(self):
        self.tmpdir.cleanup()

    def run_main(self, *args, raw_date_text="Jan 10, 2020 @ 10:00am"):
        def build_factory(config, headless=True):
            return lambda: StaticFetcher(raw_date_text)

        out = io.StringIO()
        with patch("run_monitor.build_fetcher_factory", side_effect=build_factory), redirect_stdout(out):
            code = run_monitor.main(["--config", self.config_path, "--data-dir", self.data_dir, *args])
        return code, out.getvalue()

    def test_list(self):
        """測試 --list"""
        code, output = self.run_main("--list")
        self.assertEqual(code, 0)
        self.assertIn("CBA_A3 (450814997)", output)

    def test_missing_data_dir(self):
        out = io.StringIO()
        with redirect_stdout(out):
            code = run_monitor.main(["--config", self.config_path, "--data-dir", os.path.join(self.tmpdir.name, "nope")])
        self.assertEqual(code, 1)
        self.assertIn("not found", out.getvalue())

    def test_dry_run_old_update(self):
        """測試乾跑模式，沒有近期更新"""
        code, output = self.run_main("--dry-run", "--seed", "1")
        self.assertEqual(code, 0)
        self.assertIn("DRY RUN", output)
        self.assertIn("Succeeded: 1", output)

    def test_fail_on_recent(self):
        recent = (datetime.now() - timedelta(hours=1)).strftime("%b %d, %Y @ %I:%M%p")

        code, output = self.run_main("--dry-run", raw_date_text=recent)
        self.assertEqual(code, 0)
        self.assertIn("RECENT", output)

        code, _ = self.run_main("--dry-run", "--fail-on-recent", raw_date_text=recent)
        self.assertEqual(code, 1)

    def test_fatal_item_sets_exit_code(self):
        code, output = self.run_main("--dry-run", raw_date_text="sometime last week")
        self.assertEqual(code, 1)
        self.assertIn("Failed: 1", output)

    def test_wrong_type_in_config(self):
        """測試設定值型別錯誤時以非零狀態結束，--list 也一樣"""
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump({"threshold_hours": "7"}, f)

        code, output = self.run_main("--dry-run")
        self.assertEqual(code, 1)
        self.assertIn("threshold_hours", output)

        code, output = self.run_main("--list")
        self.assertEqual(code, 1)
        self.assertIn("Error loading config", output)

    def test_invalid_config(self):
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump({"batch_size": 0}, f)
        code, output = self.run_main("--dry-run")
        self.assertEqual(code, 1)
        self.assertIn("Error loading config", output)


if __name__ == "__main__":
    unittest.main()
