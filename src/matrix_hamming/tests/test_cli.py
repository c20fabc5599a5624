import json
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from matrix_hamming.cli import app
from matrix_hamming.cli.utils import derive_output_path
from matrix_hamming.session import encode_bytes

runner = CliRunner()


class TestDeriveOutputPath(unittest.TestCase):
    def test_extension(self):
        self.assertEqual(
            derive_output_path(Path("notes.txt"), "encoded"), Path("notes_encoded.txt")
        )
        self.assertEqual(
            derive_output_path(Path("dir/archive.tar.gz"), "decoded"),
            Path("dir/archive.tar_decoded.gz"),
        )

    def test_no_extension(self):
        self.assertEqual(derive_output_path(Path("data"), "faulty"), Path("data_faulty"))


class TestCli(unittest.TestCase):
    def setUp(self):
        self._dir = tempfile.TemporaryDirectory()
        self.root = Path(self._dir.name)

    def tearDown(self):
        self._dir.cleanup()

    def write(self, name: str, data: bytes) -> Path:
        path = self.root.joinpath(name)
        _ = path.write_bytes(data)
        return path

    def test_encode_decode(self):
        source = self.write("notes.txt", b"A")

        result = runner.invoke(app, ["encode", str(source)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("5 parity bits / 16 bit block = 31.25% redundancy", result.output)

        encoded = self.root.joinpath("notes_encoded.txt")
        self.assertEqual(encoded.read_text(), "0100101000001")

        result = runner.invoke(app, ["decode", str(encoded)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("No errors detected.", result.output)

        decoded = self.root.joinpath("notes_encoded_decoded.txt")
        self.assertEqual(decoded.read_bytes(), b"A")

    def test_size_and_output(self):
        data = bytes(range(200))
        source = self.write("data.bin", data)
        encoded = self.root.joinpath("out.txt")
        decoded = self.root.joinpath("back.bin")

        result = runner.invoke(
            app, ["encode", str(source), "-s", "32", "-o", str(encoded), "--quiet"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output, "")
        self.assertEqual(encoded.read_text(), encode_bytes(data, 32))

        result = runner.invoke(
            app, ["decode", str(encoded), "--size", "32", "--output", str(decoded)]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(decoded.read_bytes(), data)

    def test_invalid_size(self):
        source = self.write("notes.txt", b"A")
        for size in ["3", "1", "512"]:
            result = runner.invoke(app, ["encode", str(source), "-s", size])
            self.assertNotEqual(result.exit_code, 0, size)
            self.assertFalse(self.root.joinpath("notes_encoded.txt").exists())

    def test_missing_input(self):
        result = runner.invoke(app, ["encode", str(self.root.joinpath("missing"))])
        self.assertNotEqual(result.exit_code, 0)

    def test_invalid_wire(self):
        source = self.write("broken.txt", b"0101x")
        result = runner.invoke(app, ["decode", str(source)])
        self.assertEqual(result.exit_code, 1)

    def test_vegetarian(self):
        source = self.write("hi.txt", b"Hi")

        result = runner.invoke(app, ["encode", str(source), "--vegetarian", "-q"])
        self.assertEqual(result.exit_code, 0, result.output)
        encoded = self.root.joinpath("hi_encoded.txt")
        self.assertEqual(encoded.read_text(), "0100100001101001")

        result = runner.invoke(app, ["decode", str(encoded), "-v", "-q"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self.root.joinpath("hi_encoded_decoded.txt").read_bytes(), b"Hi")

    def test_inject_and_decode(self):
        encoded = self.write("a_encoded.txt", encode_bytes(b"A").encode())

        result = runner.invoke(app, ["inject", str(encoded), "-n", "2", "--seed", "1"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Flipped 2/13 bits", result.output)

        faulty = self.root.joinpath("a_encoded_faulty.txt")
        report_path = self.root.joinpath("report.json")

        result = runner.invoke(app, ["decode", str(faulty), "--report", str(report_path)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("2 or more bit error(s) detected.", result.output)
        self.assertIn("Not all errors could be corrected.", result.output)

        report = json.loads(report_path.read_text())
        self.assertEqual(report["errors"], 2)
        self.assertFalse(report["correctable"])

    def test_inject_too_many(self):
        encoded = self.write("a_encoded.txt", b"0101")
        result = runner.invoke(app, ["inject", str(encoded), "-n", "5"])
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
