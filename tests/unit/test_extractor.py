import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from switop_telemetry.extractor import (
    ANE_POWER,
    CPU_POWER,
    E_CLUSTER_FREQ,
    E_CLUSTER_RESIDENCY,
    GPU_POWER,
    GPU_RESIDENCY,
    P_CLUSTER_FREQ,
    PATTERNS,
    extract,
    extract_all,
    tokenize,
)
from switop_telemetry.models import Unit


SAMPLE = (ROOT / "tests" / "samples" / "powermetrics_sample.txt").read_text(encoding="utf-8")


class ExtractTests(unittest.TestCase):
    def test_returns_value_and_unit(self):
        metric = extract("CPU Power: 1234 mW\n", CPU_POWER)
        self.assertIsNotNone(metric)
        self.assertEqual(metric.value, 1234.0)
        self.assertEqual(metric.unit, Unit.MILLIWATT)
        self.assertEqual(metric.name, "cpu_power")

    def test_absent_label(self):
        self.assertIsNone(extract("GPU Power: 12 mW\n", CPU_POWER))
        self.assertIsNone(extract("", ANE_POWER))

    def test_unparsable_value_is_zero(self):
        metric = extract("CPU Power: n/a mW\n", CPU_POWER)
        self.assertIsNotNone(metric)
        self.assertEqual(metric.value, 0.0)

        metric = extract("CPU Power:\nGPU Power: 5 mW\n", CPU_POWER)
        self.assertEqual(metric.value, 0.0)

    def test_position_and_surrounding_text_do_not_matter(self):
        first = extract("CPU Power: 900 mW\nnoise line\n", CPU_POWER)
        last = extract("*** header ***\nunrelated: 5 MHz\nmore noise CPU Power: 900 mW", CPU_POWER)
        self.assertEqual(first, last)

    def test_first_match_wins(self):
        metric = extract("GPU Power: 10 mW\nGPU Power: 20 mW\n", GPU_POWER)
        self.assertEqual(metric.value, 10.0)

    def test_residency_and_frequency_from_sample(self):
        self.assertEqual(extract(SAMPLE, E_CLUSTER_FREQ).value, 1020.0)
        residency = extract(SAMPLE, E_CLUSTER_RESIDENCY)
        self.assertAlmostEqual(residency.value, 45.67)
        self.assertEqual(residency.unit, Unit.PERCENT)
        self.assertEqual(extract(SAMPLE, P_CLUSTER_FREQ).value, 2064.0)
        self.assertAlmostEqual(extract(SAMPLE, GPU_RESIDENCY).value, 7.89)

    def test_combined_line_is_not_mistaken_for_cpu_power(self):
        text = "Combined Power (CPU + GPU + ANE): 2300 mW\n"
        self.assertIsNone(extract(text, CPU_POWER))

    def test_extract_all_covers_known_patterns(self):
        metrics = extract_all(SAMPLE)
        self.assertEqual(set(metrics), set(PATTERNS))
        self.assertTrue(all(m is not None for m in metrics.values()))
        self.assertEqual(metrics["ane_power"].value, 0.0)

    def test_extract_all_partial_record(self):
        metrics = extract_all("E-Cluster HW active frequency: 600 MHz\n")
        self.assertEqual(metrics["e_cluster_freq"].value, 600.0)
        self.assertIsNone(metrics["e_cluster_residency"])
        self.assertIsNone(metrics["cpu_power"])


class TokenizeTests(unittest.TestCase):
    def test_tokenizes_label_value_unit_lines(self):
        tokens = list(tokenize("CPU 0 frequency: 1050 MHz\nE-Cluster idle residency:  54.33%\nnot a metric\n"))
        self.assertEqual([t.label for t in tokens], ["CPU 0 frequency", "E-Cluster idle residency"])
        self.assertEqual(tokens[0].unit, Unit.MHZ)
        self.assertAlmostEqual(tokens[1].value, 54.33)

    def test_sample_contains_combined_power_token(self):
        labels = {t.label: t for t in tokenize(SAMPLE)}
        self.assertIn("Combined Power (CPU + GPU + ANE)", labels)
        self.assertEqual(labels["Combined Power (CPU + GPU + ANE)"].value, 2300.0)


if __name__ == "__main__":
    unittest.main()
