import subprocess
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))

from switop_core.commands import run_command


class RunCommandTests(unittest.TestCase):
    def test_returns_decoded_stdout(self):
        out = run_command(sys.executable, ["-c", "import sys; sys.stdout.write('Apple M2\\n')"])
        self.assertEqual(out, "Apple M2\n")

    def test_invalid_bytes_are_replaced(self):
        out = run_command(sys.executable, ["-c", "import sys; sys.stdout.buffer.write(b'ok \\xff')"])
        self.assertTrue(out.startswith("ok "))
        self.assertIn("�", out)

    def test_missing_binary_returns_empty(self):
        self.assertEqual(run_command("/definitely/not/here/sysctl", ["-n", "hw.memsize"]), "")

    def test_timeout_returns_empty(self):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="x", timeout=1)):
            self.assertEqual(run_command("/usr/sbin/system_profiler", ["SPDisplaysDataType"]), "")


if __name__ == "__main__":
    unittest.main()
