import dataclasses
import unittest
from datetime import timedelta

from portexec.models import (
    ConnectionEntry, FilterCriteria, KillOutcome, KillResult, apply_filter,
    is_valid_port, normalize_state, unique_pids,
)


def make_entry(port=8080, pid=4321, name="chrome.exe"):
    return ConnectionEntry(
        protocol="TCP", local_address=f"0.0.0.0:{port}", port=port, pid=pid,
        process_name=name, parent_pid=1, uptime=timedelta(seconds=5),
        exe_path="", state="LISTENING", protected=False,
    )


class TestFilterCriteria(unittest.TestCase):
    def setUp(self):
        self.entries = [
            make_entry(8080, 4321, "chrome.exe"),
            make_entry(443, 100, "nginx"),
            make_entry(5432, 77, "postgres"),
        ]

    def test_empty_matches_everything(self):
        criteria = FilterCriteria()
        self.assertTrue(criteria.is_empty())
        self.assertTrue(all(criteria.matches(e) for e in self.entries))
        self.assertEqual(apply_filter(self.entries, criteria), self.entries)

    def test_process_name_case_insensitive_substring(self):
        criteria = FilterCriteria(process_name="CHROME")
        self.assertTrue(criteria.matches(self.entries[0]))
        self.assertFalse(criteria.matches(self.entries[1]))

    def test_port_exact_or_substring(self):
        self.assertTrue(FilterCriteria(port="8080").matches(self.entries[0]))
        self.assertTrue(FilterCriteria(port="80").matches(self.entries[0]))
        self.assertFalse(FilterCriteria(port="81").matches(self.entries[0]))

    def test_pid_exact_or_substring(self):
        self.assertTrue(FilterCriteria(pid="432").matches(self.entries[0]))
        self.assertFalse(FilterCriteria(pid="999").matches(self.entries[0]))

    def test_criteria_are_anded(self):
        criteria = FilterCriteria(port="443", process_name="chrome")
        self.assertEqual(apply_filter(self.entries, criteria), [])
        criteria = FilterCriteria(port="443", process_name="NGI", pid="10")
        self.assertEqual(apply_filter(self.entries, criteria), [self.entries[1]])

    def test_parse_search_text(self):
        self.assertEqual(FilterCriteria.parse("8080"), FilterCriteria(port="8080"))
        self.assertEqual(FilterCriteria.parse(" nginx "), FilterCriteria(process_name="nginx"))
        self.assertEqual(FilterCriteria.parse("99999"), FilterCriteria(process_name="99999"))
        self.assertTrue(FilterCriteria.parse("").is_empty())


class TestValues(unittest.TestCase):
    def test_entries_are_immutable(self):
        entry = make_entry()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            entry.port = 1

    def test_kill_result_equality_ignores_error_object(self):
        a = KillResult(False, "x", KillOutcome.FAILED, ValueError("a"))
        b = KillResult(False, "x", KillOutcome.FAILED, ValueError("b"))
        self.assertEqual(a, b)

    def test_normalize_state(self):
        self.assertEqual(normalize_state("LISTEN"), "LISTENING")
        self.assertEqual(normalize_state("FIN_WAIT2"), "FIN_WAIT2")
        self.assertEqual(normalize_state("NONE"), "NONE")

    def test_is_valid_port(self):
        for text, ok in (("0", True), ("65535", True), ("65536", False), ("-1", False),
                         ("http", False), ("", False)):
            with self.subTest(text=text):
                self.assertEqual(is_valid_port(text), ok)

    def test_unique_pids_keeps_first_seen_order(self):
        entries = [make_entry(pid=3), make_entry(pid=1), make_entry(pid=3)]
        self.assertEqual(unique_pids(entries), [3, 1])


if __name__ == "__main__":
    unittest.main()
