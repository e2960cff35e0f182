import tempfile
import unittest
from pathlib import Path

from catalog_dedupe.core.matching import MAX_EXCEEDED, ClusterVerdict, DedupeResult, VerdictStatus
from catalog_dedupe.store import MatchStore


class TestMatchStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = MatchStore(Path(self._tmp.name) / "nested" / "dedupe.sqlite3")

    def tearDown(self):
        self.store.close()
        self._tmp.cleanup()

    def test_match_sets_round_trip(self):
        result = DedupeResult(
            match_sets={"tetris": ["tetris!"], "doom": None, "the": [MAX_EXCEEDED]},
            overflow=["the"],
            terms=4,
        )
        self.assertEqual(self.store.save_match_sets("title", result), 3)

        loaded = self.store.load_match_sets("title")
        self.assertEqual(list(loaded.match_sets), ["tetris", "doom", "the"])
        self.assertEqual(loaded.match_sets["tetris"], ["tetris!"])
        self.assertIsNone(loaded.match_sets["doom"])
        self.assertEqual(loaded.match_sets["the"], [MAX_EXCEEDED])
        self.assertEqual(loaded.overflow, ["the"])

    def test_saving_replaces_previous_run(self):
        self.store.save_match_sets("title", DedupeResult(match_sets={"tetris": ["tetris!"]}))
        self.store.save_match_sets("title", DedupeResult(match_sets={"doom": None}))
        self.assertEqual(list(self.store.load_match_sets("title").match_sets), ["doom"])

    def test_fields_are_separate(self):
        self.store.save_match_sets("title", DedupeResult(match_sets={"tetris": None}))
        self.store.save_match_sets("platform", DedupeResult(match_sets={"snes": ["snes!"]}))
        self.assertEqual(list(self.store.load_match_sets("title").match_sets), ["tetris"])
        self.assertEqual(self.store.load_match_sets("missing").match_sets, {})

    def test_verdicts_filtered_by_status(self):
        verdicts = [
            ClusterVerdict("tetris!", ("tetris",), True, VerdictStatus.ACCEPTED),
            ClusterVerdict("zelda", ("zelde",), False, VerdictStatus.REVIEW),
            ClusterVerdict.unmatched("doom"),
        ]
        self.store.save_verdicts("title", verdicts)

        self.assertEqual(self.store.list_verdicts("title"), verdicts)
        self.assertEqual(self.store.list_verdicts("title", status=VerdictStatus.REVIEW), [verdicts[1]])

    def test_repeated_sources_kept(self):
        verdicts = [ClusterVerdict.unmatched("doom"), ClusterVerdict.unmatched("doom")]
        self.assertEqual(self.store.save_verdicts("title", verdicts), 2)
        self.assertEqual(len(self.store.list_verdicts("title")), 2)

    def test_clear(self):
        self.store.save_match_sets("title", DedupeResult(match_sets={"tetris": None}))
        self.store.save_verdicts("title", [ClusterVerdict.unmatched("tetris")])
        self.store.clear("title")
        self.assertEqual(self.store.load_match_sets("title").match_sets, {})
        self.assertEqual(self.store.list_verdicts("title"), [])


if __name__ == "__main__":
    unittest.main()
