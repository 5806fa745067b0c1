from __future__ import annotations

import unittest

from dashboard.domain.records import FileFormat, FileRole
from dashboard.domain.sources import InMemorySource, UploadBatch
from dashboard.errors import PatternDetectionError
from dashboard.services.file_classifier import FileClassifier, match_file_name


class _UnreadableSource(InMemorySource):
    async def read_bytes(self) -> bytes:
        raise AssertionError("classification must not read file content")


class TestMatchFileName(unittest.TestCase):
    def test_recovers_customer_type_period_and_format(self) -> None:
        matched = match_file_name("Acme_Billing_202401.xlsx")

        self.assertEqual(matched.customer, "Acme")
        self.assertEqual(matched.file_type, "Billing")
        self.assertEqual(matched.period, "202401")
        self.assertEqual(matched.file_format, FileFormat.SPREADSHEET)

    def test_customer_may_contain_underscores(self) -> None:
        matched = match_file_name("Acme_Corp_Billing_202312.csv")

        self.assertEqual(matched.customer, "Acme_Corp")
        self.assertEqual(matched.file_type, "Billing")
        self.assertEqual(matched.period, "202312")
        self.assertEqual(matched.file_format, FileFormat.DELIMITED)

    def test_table_kind_type_token_keeps_its_underscores(self) -> None:
        for name, customer, file_type in (
            ("Acme_TP_Summary_202401.csv", "Acme", "TP_Summary"),
            ("Acme_TP_Doc_Summary_202401.csv", "Acme", "TP_Doc_Summary"),
            ("Acme_Date_Summary_202401.csv", "Acme", "Date_Summary"),
            ("Acme_Corp_Hub_Summary_202401.xlsx", "Acme_Corp", "Hub_Summary"),
        ):
            with self.subTest(name=name):
                matched = match_file_name(name)
                self.assertEqual(matched.customer, customer)
                self.assertEqual(matched.file_type, file_type)

    def test_eight_digit_token_keeps_year_and_month(self) -> None:
        self.assertEqual(match_file_name("Acme_Billing_20240115.xls").period, "202401")

    def test_extension_is_case_insensitive(self) -> None:
        self.assertEqual(match_file_name("Acme_Billing_202401.XLSM").extension, "xlsm")

    def test_rejects_non_matching_names(self) -> None:
        for name in (
            "Acme_202401.xlsx",
            "Acme_Billing_2024.xlsx",
            "Acme_Billing_202401.pdf",
            "billing.xlsx",
            "Acme_Billing_202413.xlsx",
            "Acme_Billing_202400.csv",
        ):
            with self.subTest(name=name):
                with self.assertRaises(PatternDetectionError) as ctx:
                    match_file_name(name)
                self.assertEqual(ctx.exception.file_name, name)


class TestFileClassifier(unittest.TestCase):
    def setUp(self) -> None:
        self.classifier = FileClassifier()

    def test_classifies_batch_in_upload_order(self) -> None:
        descriptors = self.classifier.classify_primary(
            [
                InMemorySource("Acme_Billing_202402.csv", b"x"),
                InMemorySource("acme_Billing_202401.xlsx", b"xy"),
            ]
        )

        self.assertEqual([d.detected_period for d in descriptors], ["202402", "202401"])
        self.assertEqual([d.byte_size for d in descriptors], [1, 2])
        self.assertTrue(all(d.role == FileRole.PRIMARY for d in descriptors))

    def test_customer_mismatch_fails_before_any_read(self) -> None:
        first = _UnreadableSource("Acme_X_202401.csv", b"Date,Documents\n")
        second = _UnreadableSource("Globex_X_202402.csv", b"Date,Documents\n")

        with self.assertRaises(PatternDetectionError) as ctx:
            self.classifier.classify_primary([first, second])

        self.assertEqual(ctx.exception.file_name, "Globex_X_202402.csv")
        self.assertEqual(ctx.exception.context["expected_customer"], "Acme")
        self.assertEqual(ctx.exception.context["detected_customer"], "Globex")
        self.assertTrue(ctx.exception.is_critical)

    def test_one_file_per_table_kind_is_one_customer(self) -> None:
        descriptors = self.classifier.classify_primary(
            [
                InMemorySource("Acme_Date_Summary_202401.csv", b"x"),
                InMemorySource("Acme_TP_Summary_202401.csv", b"x"),
                InMemorySource("Acme_TP_Doc_Summary_202401.csv", b"x"),
            ]
        )

        self.assertEqual({d.detected_customer for d in descriptors}, {"Acme"})
        self.assertEqual([d.file_type for d in descriptors], ["Date_Summary", "TP_Summary", "TP_Doc_Summary"])

    def test_empty_batch_is_rejected(self) -> None:
        with self.assertRaises(PatternDetectionError):
            self.classifier.classify_primary([])

    def test_auxiliary_files_are_classified_by_role(self) -> None:
        batch = UploadBatch(
            primary=[InMemorySource("Acme_Billing_202401.csv", b"x")],
            auxiliary={FileRole.CROSS_REFERENCE: InMemorySource("partners.tsv", b"ID\tName\n")},
        )

        primary, auxiliary = self.classifier.classify_batch(batch)

        self.assertEqual(len(primary), 1)
        descriptor = auxiliary[FileRole.CROSS_REFERENCE]
        self.assertEqual(descriptor.kind, FileFormat.DELIMITED)
        self.assertIsNone(descriptor.detected_customer)
        self.assertIsNone(descriptor.detected_period)

    def test_unknown_auxiliary_role_raises(self) -> None:
        with self.assertRaises(ValueError):
            self.classifier.classify_auxiliary("invoice", InMemorySource("x.csv", b"x"))
