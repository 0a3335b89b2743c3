"""
End-to-end tests for the validation pipeline, manifest digests and preview model.
"""

import json
import unittest

from .archive_reader import ArchiveReader
from .errors import ArchiveUnreadable
from .fixtures import FAKE_PNG, build_pkpass, corrupt_entry, sample_pass_json, zip_pkpass
from .manifest_digest import check_manifest_digests
from .manifest_parser import parse_pass_data
from .models import ValidationStatus
from .preview import build_preview
from .processor import INVALID_ARCHIVE_MESSAGE, PassValidationProcessor, validate_pkpass
from .result_aggregator import report_to_dict


class TestPassValidationProcessor(unittest.TestCase):
    """Archive bytes -> (PassDescriptor, report)"""

    def test_valid_archive(self):
        outcome = validate_pkpass(build_pkpass())

        self.assertTrue(outcome.valid)
        self.assertEqual(list(outcome.report), ["structure", "keys", "signature"])
        self.assertEqual(outcome.descriptor.serial_number, "TICKET_0001")

    def test_not_a_zip(self):
        with self.assertRaises(ArchiveUnreadable) as ctx:
            validate_pkpass(b"PK\x03\x04 definitely not a zip")
        self.assertEqual(str(ctx.exception), INVALID_ARCHIVE_MESSAGE)

    def test_empty_upload(self):
        with self.assertRaises(ArchiveUnreadable):
            validate_pkpass(b"")

    def test_missing_pass_json_aborts_without_report(self):
        with self.assertRaises(ArchiveUnreadable) as ctx:
            validate_pkpass(build_pkpass(omit=["pass.json"]))
        self.assertEqual(str(ctx.exception), INVALID_ARCHIVE_MESSAGE)

    def test_malformed_pass_json_aborts(self):
        with self.assertRaises(ArchiveUnreadable):
            validate_pkpass(build_pkpass(pass_data=b"{not json"))

    def test_corrupt_pass_json_data_aborts(self):
        archive = corrupt_entry(build_pkpass(), "pass.json")

        with self.assertRaises(ArchiveUnreadable) as ctx:
            validate_pkpass(archive)
        self.assertEqual(str(ctx.exception), INVALID_ARCHIVE_MESSAGE)

    def test_team_identifier_mismatch_scenario(self):
        # certificate carries ABCDE12345, pass.json declares another team
        outcome = validate_pkpass(build_pkpass(pass_data=sample_pass_json(teamIdentifier="ZZZZZ99999")))
        report = outcome.report

        self.assertTrue(all(r.status == ValidationStatus.SUCCESS for r in report["structure"]))
        self.assertTrue(all(r.status == ValidationStatus.SUCCESS for r in report["keys"]))
        errors = [r for r in report["signature"] if r.status == ValidationStatus.ERROR]
        self.assertEqual(len(errors), 1)
        self.assertIn("Team identifier", errors[0].label)
        self.assertFalse(outcome.valid)

    def test_missing_signature_scenario(self):
        report = validate_pkpass(build_pkpass(omit=["signature"])).report

        signature_entry = [r for r in report["structure"] if r.label == "Archive entry signature"][0]
        self.assertEqual(signature_entry.status, ValidationStatus.ERROR)
        self.assertEqual(len(report["signature"]), 1)
        self.assertEqual(report["signature"][0].status, ValidationStatus.ERROR)
        self.assertTrue(report["signature"][0].label.startswith("Cryptographic check failed"))

    def test_schema_errors_do_not_stop_other_checks(self):
        report = validate_pkpass(build_pkpass(pass_data=sample_pass_json(formatVersion=2))).report

        self.assertEqual(report["keys"][1].status, ValidationStatus.ERROR)
        self.assertEqual(len(report["signature"]), 5)

    def test_missing_optional_icon_keeps_archive_valid(self):
        outcome = validate_pkpass(build_pkpass(omit=["icon@3x.png"]))

        self.assertEqual(outcome.report["structure"][-1].status, ValidationStatus.INFO)
        self.assertTrue(outcome.valid)

    def test_manifest_category_only_when_enabled(self):
        processor = PassValidationProcessor(verify_manifest=True)

        report = processor.validate(build_pkpass()).report

        self.assertEqual(list(report), ["structure", "keys", "signature", "manifest"])
        self.assertTrue(all(r.status == ValidationStatus.SUCCESS for r in report["manifest"]))

    def test_report_to_dict(self):
        report = report_to_dict(validate_pkpass(build_pkpass()).report)

        self.assertEqual(report["keys"][0], {"label": "Key description present", "status": "success", "mandatory": True})
        json.dumps(report)


class TestManifestDigests(unittest.TestCase):

    def test_tampered_entry(self):
        files = {"pass.json": json.dumps(sample_pass_json()).encode("utf-8"), "icon.png": FAKE_PNG}
        manifest = {"pass.json": "0" * 40, "icon.png": "1" * 40}
        files["manifest.json"] = json.dumps(manifest).encode("utf-8")

        with ArchiveReader(zip_pkpass(files)) as archive:
            results = check_manifest_digests(archive)

        self.assertEqual(results[0].status, ValidationStatus.SUCCESS)
        self.assertEqual([r.status for r in results[1:]], [ValidationStatus.ERROR, ValidationStatus.ERROR])

    def test_unlisted_and_missing_entries(self):
        files = {"pass.json": b"{}", "extra.png": FAKE_PNG}
        files["manifest.json"] = json.dumps({
            "pass.json": "bf21a9e8fbc5a3846fb05b4fa0859e0917b2202f",
            "icon.png": "2" * 40
        }).encode("utf-8")

        with ArchiveReader(zip_pkpass(files)) as archive:
            results = check_manifest_digests(archive)

        statuses = [r.status for r in results]
        self.assertEqual(statuses, [ValidationStatus.SUCCESS, ValidationStatus.SUCCESS,
                                    ValidationStatus.ERROR, ValidationStatus.WARNING])
        self.assertIn("extra.png", results[-1].label)
        self.assertFalse(results[-1].mandatory)

    def test_manifest_shape(self):
        files = {"manifest.json": json.dumps({"pass.json": "not-a-digest"}).encode("utf-8")}

        with ArchiveReader(zip_pkpass(files)) as archive:
            results = check_manifest_digests(archive)

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].status, ValidationStatus.ERROR)

    def test_corrupt_asset_stays_local(self):
        archive = corrupt_entry(build_pkpass(), "icon@2x.png")

        outcome = PassValidationProcessor(verify_manifest=True).validate(archive)

        failed = [r for r in outcome.report["manifest"] if r.status == ValidationStatus.ERROR]
        self.assertEqual(len(failed), 1)
        self.assertIn("icon@2x.png", failed[0].label)
        self.assertTrue(all(r.status == ValidationStatus.SUCCESS for r in outcome.report["keys"]))

    def test_manifest_missing(self):
        with ArchiveReader(build_pkpass(omit=["manifest.json"])) as archive:
            results = check_manifest_digests(archive)

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].status, ValidationStatus.ERROR)


class TestPreview(unittest.TestCase):

    def test_preview_layout(self):
        preview = build_preview(parse_pass_data(sample_pass_json()))

        self.assertEqual(preview["style"], "eventTicket")
        self.assertEqual(preview["title"], "Example Live")
        self.assertEqual(preview["organizationName"], "Example Events")
        self.assertEqual([f["key"] for f in preview["primaryFields"]], ["event"])
        self.assertEqual([f["key"] for f in preview["detailFields"]], ["venue", "date", "row", "seat"])
        self.assertEqual(preview["barcode"]["message"], "TICKET_0001")

    def test_preview_defaults(self):
        preview = build_preview(parse_pass_data({"description": "Plain pass"}))

        self.assertEqual(preview["backgroundColor"], "#fff")
        self.assertEqual(preview["foregroundColor"], "#000")
        self.assertEqual(preview["title"], "Plain pass")
        self.assertIsNone(preview["style"])
        self.assertEqual(preview["primaryFields"], [])
        self.assertIsNone(preview["barcode"])


if __name__ == "__main__":
    unittest.main()
