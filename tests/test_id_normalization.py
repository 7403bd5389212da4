import unittest

from utils.id_normalization import (
    cluster_number,
    llm_node_id,
    psych_node_id,
    strip_node_prefix,
    month_from_arxiv_url,
)
from utils.sanitization import clean_text, normalize_title, normalize_theory_name


class TestClusterIds(unittest.TestCase):

    def test_cluster_number(self):
        self.assertEqual(cluster_number("Cluster 0"), 0)
        self.assertEqual(cluster_number("Cluster 12"), 12)
        self.assertEqual(cluster_number("Misc"), 0)
        self.assertEqual(cluster_number(""), 0)

    def test_node_ids_round_trip_to_cluster_keys(self):
        self.assertEqual(llm_node_id("Cluster 3"), "LLM-Cluster 3")
        self.assertEqual(psych_node_id("Cluster 3"), "Psych-Cluster 3")
        self.assertEqual(strip_node_prefix("LLM-Cluster 3"), "Cluster 3")
        self.assertEqual(strip_node_prefix("Psych-Cluster 3"), "Cluster 3")
        self.assertEqual(strip_node_prefix("Cluster 3"), "Cluster 3")
        self.assertIsNone(strip_node_prefix(None))


class TestArxivMonth(unittest.TestCase):

    def test_month_from_abstract_url(self):
        self.assertEqual(month_from_arxiv_url("https://arxiv.org/abs/2310.01234"), "2023-10")
        self.assertEqual(month_from_arxiv_url("http://arxiv.org/abs/2401.00001v3"), "2024-01")

    def test_invalid_month_is_rejected(self):
        self.assertIsNone(month_from_arxiv_url("https://arxiv.org/abs/2313.01234"))
        self.assertIsNone(month_from_arxiv_url("https://arxiv.org/abs/2300.01234"))

    def test_urls_without_date_code(self):
        self.assertIsNone(month_from_arxiv_url(None))
        self.assertIsNone(month_from_arxiv_url(""))
        self.assertIsNone(month_from_arxiv_url("https://arxiv.org/pdf/2310.01234"))
        self.assertIsNone(month_from_arxiv_url("https://doi.org/10.1000/xyz"))


class TestNormalization(unittest.TestCase):

    def test_normalize_title_ignores_case_and_outer_whitespace(self):
        self.assertEqual(normalize_title("  Attachment in ADULTS "), "attachment in adults")
        self.assertEqual(normalize_title(None), "")
        # inner spacing is significant
        self.assertNotEqual(normalize_title("Attachment  in Adults"), normalize_title("Attachment in Adults"))

    def test_normalize_theory_name(self):
        self.assertEqual(normalize_theory_name("Mental Schema Theories"), "schema theory")
        self.assertEqual(normalize_theory_name("Schema Theory"), "schema theory")
        self.assertEqual(normalize_theory_name("Social Learning Theories"), "social learning theory")
        self.assertEqual(normalize_theory_name("Constructivism"), "constructivism")
        self.assertEqual(normalize_theory_name(""), "")

    def test_clean_text(self):
        self.assertEqual(clean_text("  Social-\x07Clinical \n topics "), "Social-Clinical topics")
        self.assertEqual(clean_text(None), "")


if __name__ == "__main__":
    unittest.main()
