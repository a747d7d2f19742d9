#!/usr/bin/env python3
"""
測試時間字串解析
"""
import unittest
from datetime import datetime

from monitor.errors import FutureTimestamp, MalformedTimestamp
from monitor.timestamps import parse_timestamp


NOW = datetime(2024, 1, 15, 12, 0, 0)


class TestParseTimestamp(unittest.TestCase):
    def test_explicit_year(self):
        """測試含年份的格式"""
        parsed = parse_timestamp("Jun 3, 2023 @ 2:15pm", now=NOW)
        self.assertEqual(parsed.instant, datetime(2023, 6, 3, 14, 15))
        self.assertEqual(parsed.source_text, "Jun 3, 2023 @ 2:15pm")

    def test_label_prefix_is_stripped(self):
        """測試移除開頭標籤"""
        parsed = parse_timestamp("Updated: Jan 3 @ 2:15pm", now=NOW)
        self.assertEqual(parsed.instant, datetime(2024, 1, 3, 14, 15))

    def test_missing_year_in_future_resolves_to_previous_year(self):
        """測試省略年份且今年會落在未來時，使用去年"""
        parsed = parse_timestamp("Dec 20 @ 3:00pm", now=NOW)
        self.assertEqual(parsed.instant, datetime(2023, 12, 20, 15, 0))

    def test_missing_year_equal_to_now_stays_in_current_year(self):
        """測試剛好等於現在時不視為未來"""
        parsed = parse_timestamp("Jan 15 @ 12:00pm", now=NOW)
        self.assertEqual(parsed.instant, NOW)

    def test_missing_year_one_minute_ahead_goes_back_a_year(self):
        parsed = parse_timestamp("Jan 15 @ 12:01pm", now=NOW)
        self.assertEqual(parsed.instant, datetime(2023, 1, 15, 12, 1))

    def test_midnight_and_noon(self):
        """測試 12am / 12pm"""
        self.assertEqual(
            parse_timestamp("Jan 2, 2024 @ 12:05am", now=NOW).instant,
            datetime(2024, 1, 2, 0, 5),
        )
        self.assertEqual(
            parse_timestamp("Jan 2, 2024 @ 12:05pm", now=NOW).instant,
            datetime(2024, 1, 2, 12, 5),
        )

    def test_case_and_spacing_variants(self):
        """測試大小寫與空白變化"""
        expected = datetime(2023, 6, 3, 14, 15)
        for text in [
            "jun 3, 2023 @ 2:15PM",
            "JUN 03, 2023@2:15 pm",
            "Jun 3,2023 @ 2:15 pm",
            "  Jun 3, 2023 @ 2:15pm  ",
        ]:
            with self.subTest(text=text):
                self.assertEqual(parse_timestamp(text, now=NOW).instant, expected)

    def test_leap_day_without_year_falls_back(self):
        """測試今年沒有 2/29 時使用去年"""
        parsed = parse_timestamp("Feb 29 @ 1:00pm", now=datetime(2025, 3, 1, 9, 0))
        self.assertEqual(parsed.instant, datetime(2024, 2, 29, 13, 0))

    def test_explicit_future_year_fails(self):
        """測試明確的未來年份"""
        with self.assertRaises(FutureTimestamp):
            parse_timestamp("Jun 3, 2030 @ 2:15pm", now=NOW)

    def test_explicit_year_later_today_fails(self):
        with self.assertRaises(FutureTimestamp):
            parse_timestamp("Jan 15, 2024 @ 3:00pm", now=NOW)

    def test_malformed_inputs(self):
        """測試無法辨識的格式"""
        for text in [
            "",
            "yesterday",
            "Jun 3 2:15pm",
            "June 3, 2023 @ 2:15pm",
            "Jun 3, 2023 @ 2:15",
            "Jun 3, 23 @ 2:15pm",
        ]:
            with self.subTest(text=text):
                with self.assertRaises(MalformedTimestamp):
                    parse_timestamp(text, now=NOW)

    def test_impossible_dates_are_malformed(self):
        """測試不存在的日期或時間"""
        for text in [
            "Feb 30, 2023 @ 1:00pm",
            "Jun 3, 2023 @ 14:00pm",
            "Jun 3, 2023 @ 2:75pm",
            "Foo 3, 2023 @ 2:15pm",
        ]:
            with self.subTest(text=text):
                with self.assertRaises(MalformedTimestamp):
                    parse_timestamp(text, now=NOW)

    def test_defaults_to_current_time(self):
        """測試未指定 now 時使用目前時間"""
        parsed = parse_timestamp("Jan 1, 2000 @ 1:00am")
        self.assertEqual(parsed.instant, datetime(2000, 1, 1, 1, 0))


if __name__ == "__main__":
    unittest.main()
