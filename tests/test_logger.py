import logging
import tempfile
import unittest
from pathlib import Path

from s3_resources.utils.logger import configure_logging, resolve_level


class ConfigureLoggingTests(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger()
        self.addCleanup(root.setLevel, root.level)
        self.addCleanup(root.handlers.clear)

    def test_override_wins_over_configured_level(self):
        level = configure_logging({"level": "INFO", "console": False}, "debug")

        self.assertEqual(logging.DEBUG, level)
        self.assertEqual(logging.DEBUG, logging.getLogger().level)
        self.assertEqual(logging.INFO, logging.getLogger("botocore").level)

    def test_file_handler(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "logs" / "run.log"
            configure_logging({"level": "WARNING", "console": False, "file": str(path), "format": "%(message)s"})

            logging.getLogger("s3_resources.test").warning("listing failed")
            for handler in logging.getLogger().handlers:
                handler.close()

            self.assertEqual("listing failed\n", path.read_text(encoding="utf-8"))

    def test_resolve_level(self):
        self.assertEqual(logging.ERROR, resolve_level(" error "))
        self.assertEqual(15, resolve_level(15))
        self.assertEqual(logging.INFO, resolve_level("chatty"))


if __name__ == "__main__":
    unittest.main()
