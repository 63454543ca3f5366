import io
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

import duckdb

from food_schema import schema_exists
from init_db import init_database


class TestInitDatabase(unittest.TestCase):

    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_creates_file_and_schema(self):
        db_path = self.tmp / "nested" / "fdc.duckdb"

        with redirect_stdout(io.StringIO()):
            self.assertTrue(init_database(db_path, "fdc"))
            # running again is a no-op
            self.assertTrue(init_database(db_path, "fdc"))

        conn = duckdb.connect(str(db_path), read_only=True)
        try:
            self.assertTrue(schema_exists(conn, "fdc"))
        finally:
            conn.close()

    def test_rejects_bad_schema_name(self):
        with self.assertRaises(ValueError):
            init_database(self.tmp / "fdc.duckdb", "bad-name")
        self.assertFalse((self.tmp / "fdc.duckdb").exists())


if __name__ == "__main__":
    unittest.main()
