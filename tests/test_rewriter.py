"""
Unit tests for catalog_dedupe.core.matching.rewriter.

Records use the two aligned composite fields the rewriter works on:
title_flat (normalized tokens) and title_clean (display tokens).
"""

import unittest

from catalog_dedupe.core.matching import (
    ClusterVerdict,
    RecordRewriter,
    VerdictStatus,
    apply_all,
)


def accepted(source, *matches):
    return ClusterVerdict(source=source, matches=matches, auto_accept=True, status=VerdictStatus.ACCEPTED)


def record(flat, clean):
    return {"title_flat": flat, "title_clean": clean}


class TestRecordRewriter(unittest.TestCase):
    def setUp(self):
        self.rewriter = RecordRewriter()

    def test_sibling_tokens_untouched(self):
        records = [
            record("sonic----sonic 2", "Sonic The Hedgehog----Sonic 2 the Hedgehog"),
            record("sonic the hedgehog", "SONIC THE HEDGEHOG"),
        ]
        report = self.rewriter.apply(accepted("sonic", "sonic the hedgehog"), records, "title_clean", "title_flat")

        self.assertEqual(records[0], record("sonic----sonic 2", "Sonic The Hedgehog----Sonic 2 the Hedgehog"))
        self.assertEqual(records[1], record("sonic", "Sonic The Hedgehog"))
        self.assertEqual(report.applied, [("sonic", "sonic the hedgehog")])
        self.assertEqual(report.records_touched, 1)

    def test_rewrites_every_position_of_the_token(self):
        records = [
            record("man----megaman", "Man----MegaMan"),
            record("the man", "The Man"),
        ]
        self.rewriter.apply(accepted("the man", "man"), records, "title_clean", "title_flat")
        self.assertEqual(records[0], record("the man----megaman", "The Man----MegaMan"))

    def test_never_rewrites_inside_a_token(self):
        records = [
            record("megaman", "MegaMan"),
            record("the man", "The Man"),
            record("superman", "Superman"),
        ]
        report = self.rewriter.apply(accepted("the man", "man"), records, "title_clean", "title_flat")
        self.assertEqual(records[0], record("megaman", "MegaMan"))
        self.assertEqual(records[2], record("superman", "Superman"))
        self.assertEqual(report.records_touched, 0)

    def test_token_lists_updated_in_place(self):
        flat = ["tetris", "doom"]
        clean = ["tetris", "DOOM"]
        records = [
            {"title_flat": flat, "title_clean": clean},
            {"title_flat": ["tetris!"], "title_clean": ["Tetris!"]},
        ]
        self.rewriter.apply(accepted("tetris!", "tetris"), records, "title_clean", "title_flat")
        self.assertIs(records[0]["title_flat"], flat)
        self.assertEqual(flat, ["tetris!", "doom"])
        self.assertEqual(clean, ["Tetris!", "DOOM"])

    def test_tuples_stay_tuples(self):
        records = [
            {"title_flat": ("tetris",), "title_clean": ("tetris",)},
            {"title_flat": ("tetris!",), "title_clean": ("Tetris!",)},
        ]
        self.rewriter.apply(accepted("tetris!", "tetris"), records, "title_clean", "title_flat")
        self.assertEqual(records[0]["title_clean"], ("Tetris!",))

    def test_misaligned_record_left_alone(self):
        records = [
            record("doom----tetris", "DOOM"),
            record("tetris!", "Tetris!"),
        ]
        report = self.rewriter.apply(accepted("tetris!", "tetris"), records, "title_clean", "title_flat")
        self.assertEqual(records[0], record("doom----tetris", "DOOM"))
        self.assertEqual(report.misaligned, 1)
        self.assertEqual(report.records_touched, 0)

    def test_source_missing_from_records(self):
        records = [record("tetris", "Tetris")]
        report = self.rewriter.apply(accepted("tetris!", "tetris"), records, "title_clean", "title_flat")
        self.assertEqual(records[0], record("tetris", "Tetris"))
        self.assertEqual(report.applied, [])
        self.assertEqual(len(report.skipped), 1)
        self.assertEqual(report.skipped[0].reason, "source token not found in any record")

    def test_clean_term_taken_from_first_aligned_record(self):
        records = [
            record("doom----tetris!", "DOOM"),
            record("tetris!", "Tetris!"),
            record("tetris", "tetris"),
        ]
        report = self.rewriter.apply(accepted("tetris!", "tetris"), records, "title_clean", "title_flat")
        self.assertEqual(records[2], record("tetris!", "Tetris!"))
        self.assertEqual(report.skipped, [])

    def test_source_misaligned_everywhere(self):
        records = [record("doom----tetris!", "DOOM"), record("tetris", "tetris")]
        report = self.rewriter.apply(accepted("tetris!", "tetris"), records, "title_clean", "title_flat")
        self.assertEqual(records[1], record("tetris", "tetris"))
        self.assertEqual(report.skipped[0].reason, "source token misaligned in every record")
        self.assertEqual(report.misaligned, 1)

    def test_rejects_unaccepted_verdict(self):
        verdict = ClusterVerdict(
            source="tetris", matches=("tetrix",), auto_accept=False, status=VerdictStatus.REVIEW
        )
        with self.assertRaises(ValueError):
            self.rewriter.apply(verdict, [record("tetris", "Tetris")], "title_clean", "title_flat")

    def test_missing_fields_are_ignored(self):
        records = [{"title_flat": None, "title_clean": None}, record("tetris!", "Tetris!")]
        report = self.rewriter.apply(accepted("tetris!", "tetris"), records, "title_clean", "title_flat")
        self.assertEqual(report.records_touched, 0)
        self.assertEqual(report.applied, [("tetris!", "tetris")])


class TestApplyAll(unittest.TestCase):
    def test_only_accepted_verdicts_applied(self):
        records = [record("tetris", "tetris"), record("tetris!", "Tetris!")]
        verdicts = [
            ClusterVerdict(source="tetris!", matches=("tetris",), auto_accept=False, status=VerdictStatus.REVIEW),
            ClusterVerdict.unmatched("doom"),
        ]
        report = apply_all(verdicts, records, "title_clean", "title_flat")
        self.assertEqual(report.applied, [])
        self.assertEqual(records[0], record("tetris", "tetris"))

    def test_token_rewritten_at_most_once(self):
        records = [
            record("tetris", "tetris"),
            record("tetris!", "Tetris!"),
            record("tetris?", "Tetris?"),
        ]
        verdicts = [accepted("tetris!", "tetris"), accepted("tetris?", "tetris")]
        report = apply_all(verdicts, records, "title_clean", "title_flat")

        self.assertEqual(records[0], record("tetris!", "Tetris!"))
        self.assertEqual(report.applied, [("tetris!", "tetris")])
        self.assertEqual(len(report.skipped), 1)
        self.assertEqual(report.skipped[0].reason, "token already rewritten")

    def test_reports_merged(self):
        records = [
            record("tetris----doom", "tetris----doom"),
            record("tetris!", "Tetris!"),
            record("doom!", "DOOM!"),
        ]
        report = apply_all(
            [accepted("tetris!", "tetris"), accepted("doom!", "doom")], records, "title_clean", "title_flat"
        )
        self.assertEqual(records[0], record("tetris!----doom!", "Tetris!----DOOM!"))
        self.assertEqual(len(report.applied), 2)
        self.assertEqual(report.records_touched, 2)


if __name__ == "__main__":
    unittest.main()
