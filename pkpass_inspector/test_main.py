"""
Tests for the HTTP API and the command line inspector.
"""

import json
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner
from fastapi.testclient import TestClient

from .cli import main as cli_main
from .config import Settings
from .main import create_app, sanitize_filename
from .services.pkpass_validator.fixtures import build_pkpass, corrupt_entry, sample_pass_json


class TestValidateEndpoint(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(create_app(Settings(rate_limit_requests=3)))

    def _upload(self, content: bytes, filename: str = "ticket.pkpass", headers=None):
        return self.client.post("/api/validate", files={"file": (filename, content, "application/vnd.apple.pkpass")},
                                headers=headers)

    def test_health(self):
        self.assertEqual(self.client.get("/").json()["status"], "healthy")
        self.assertFalse(self.client.get("/api/health").json()["services"]["manifest_digests"])

    def test_valid_pass(self):
        response = self._upload(build_pkpass())

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["ok"])
        self.assertTrue(body["valid"])
        self.assertEqual(body["pass"], sample_pass_json())
        self.assertEqual(body["preview"]["title"], "Example Live")
        self.assertEqual(set(body["report"]), {"structure", "keys", "signature"})

    def test_invalid_pass_still_reports(self):
        response = self._upload(build_pkpass(omit=["signature"]))

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["valid"])

    def test_not_an_archive(self):
        response = self._upload(b"hello")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["error"], "This file is not a valid .pkpass archive.")

    def test_corrupt_pass_json(self):
        response = self._upload(corrupt_entry(build_pkpass(), "pass.json"))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["error"], "This file is not a valid .pkpass archive.")

    def test_empty_file(self):
        self.assertEqual(self._upload(b"").status_code, 400)

    def test_rejects_other_content_types(self):
        response = self.client.post("/api/validate", files={"file": ("a.pdf", b"%PDF", "application/pdf")})

        self.assertEqual(response.status_code, 400)

    def test_too_large(self):
        client = TestClient(create_app(Settings(max_file_size=10)))

        response = client.post("/api/validate", files={"file": ("a.pkpass", build_pkpass(), "application/zip")})

        self.assertEqual(response.status_code, 413)
        self.assertEqual(response.json()["detail"], {"ok": False, "error": "File size exceeds limit"})

    def test_rate_limited(self):
        for _ in range(3):
            self._upload(b"hello")

        response = self._upload(b"hello")

        self.assertEqual(response.status_code, 429)

    def test_forwarded_for_ignored_by_default(self):
        for index in range(3):
            self._upload(b"hello", headers={"X-Forwarded-For": f"10.0.0.{index}"})

        response = self._upload(b"hello", headers={"X-Forwarded-For": "10.0.0.99"})

        self.assertEqual(response.status_code, 429)

    def test_forwarded_for_behind_trusted_proxy(self):
        client = TestClient(create_app(Settings(rate_limit_requests=1, trust_forwarded_for=True)))

        for address in ("10.0.0.1", "10.0.0.2"):
            response = client.post("/api/validate", files={"file": ("a.pkpass", b"hello", "application/zip")},
                                   headers={"X-Forwarded-For": f"{address}, 172.16.0.1"})
            self.assertEqual(response.status_code, 400)

    def test_sanitize_filename(self):
        self.assertEqual(sanitize_filename("../../etc/passwd"), ".._.._etc_passwd.pkpass")
        self.assertEqual(sanitize_filename("ticket.pkpass"), "ticket.pkpass")
        self.assertEqual(sanitize_filename(""), "upload.pkpass")


class TestCli(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def _write(self, content: bytes) -> str:
        path = Path(self.tmp.name) / "ticket.pkpass"
        path.write_bytes(content)
        return str(path)

    def test_valid_pass(self):
        result = self.runner.invoke(cli_main, [self._write(build_pkpass())])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("SIGNATURE", result.output)
        self.assertIn("Valid .pkpass archive", result.output)

    def test_json_output(self):
        result = self.runner.invoke(cli_main, [self._write(build_pkpass()), "--json", "--verify-manifest"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("manifest", json.loads(result.stdout)["report"])

    def test_invalid_pass(self):
        content = build_pkpass(pass_data=sample_pass_json(teamIdentifier="ZZZZZ99999"))

        self.assertEqual(self.runner.invoke(cli_main, [self._write(content)]).exit_code, 1)

    def test_not_an_archive(self):
        self.assertEqual(self.runner.invoke(cli_main, [self._write(b"hello")]).exit_code, 2)

    def test_empty_file(self):
        self.assertEqual(self.runner.invoke(cli_main, [self._write(b"")]).exit_code, 2)

    def test_missing_file(self):
        self.assertEqual(self.runner.invoke(cli_main, ["/nonexistent/ticket.pkpass"]).exit_code, 3)


if __name__ == "__main__":
    unittest.main()
