import unittest

from catalog_dedupe.core.matching.candidates import CandidateFinder, is_pure_digit


def same_initial(a, b):
    if not a or not b:
        return None
    return 0.0 if a[0] == b[0] else 1.0


class TestIsPureDigit(unittest.TestCase):
    def test_digits(self):
        self.assertTrue(is_pure_digit("2048"))

    def test_mixed(self):
        self.assertFalse(is_pure_digit("1942 arcade"))
        self.assertFalse(is_pure_digit(""))


class TestCandidateFinder(unittest.TestCase):
    def test_mask_aligned_with_population(self):
        finder = CandidateFinder(same_initial)
        result = finder.find("apple", ["avocado", "banana", "apricot"])
        self.assertEqual(result.mask, (True, False, True))
        self.assertEqual(result.matches, ("avocado", "apricot"))
        self.assertTrue(result.is_match)

    def test_no_match(self):
        result = CandidateFinder(same_initial).find("cherry", ["avocado", "banana"])
        self.assertEqual(result.mask, (False, False))
        self.assertFalse(result.is_match)

    def test_threshold_is_inclusive(self):
        finder = CandidateFinder(lambda a, b: 0.1)
        self.assertTrue(finder.find("a", ["b"], max_distance=0.1).is_match)
        self.assertFalse(finder.find("a", ["b"], max_distance=0.09).is_match)

    def test_undefined_distance_never_matches(self):
        finder = CandidateFinder(lambda a, b: None)
        self.assertEqual(finder.find("a", ["b", "c"]).mask, (False, False))

    def test_short_terms_are_not_tested(self):
        finder = CandidateFinder(same_initial)
        result = finder.find("ape", ["apple", "apricot"], min_length=4)
        self.assertEqual(result.mask, (False, False))
        self.assertEqual(finder.comparisons, 0)

    def test_numeric_terms_skipped_when_requested(self):
        finder = CandidateFinder(same_initial)
        self.assertFalse(finder.find("2048", ["2049"], skip_numeric=True).is_match)
        self.assertTrue(finder.find("2048", ["2049"]).is_match)

    def test_counts_comparisons(self):
        finder = CandidateFinder(same_initial)
        finder.find("apple", ["avocado", "banana", "apricot"])
        finder.find("banana", ["blueberry"])
        self.assertEqual(finder.comparisons, 4)

    def test_default_distance(self):
        result = CandidateFinder().find("mega man", ["mega man!", "tetris"])
        self.assertEqual(result.matches, ("mega man!",))


if __name__ == "__main__":
    unittest.main()
