from __future__ import annotations

import unittest

from dashboard.domain.records import MapConfigEntry, NormalizedRecord, PartnerReportEntry, TableKind
from dashboard.services.period_aggregator import aggregate
from metrics.reconciliation import ReconciliationStatus, map_coverage, reconcile_partner_report


def _record(table_kind: str, entity_id: str, documents: int, **attributes) -> NormalizedRecord:
    return NormalizedRecord(
        table_kind=table_kind,
        period="202401",
        entity_id=entity_id,
        document_count=documents,
        kilocharacter_count=0.0,
        attributes=attributes,
    )


class TestPartnerReportReconciliation(unittest.TestCase):
    def setUp(self) -> None:
        self.timeline = aggregate(
            [
                [
                    _record(TableKind.TP_SUMMARY, "P1", 100, partner_id="P1"),
                    _record(TableKind.TP_SUMMARY, "P2", 20, partner_id="P2"),
                ]
            ]
        )

    def test_statuses_and_variance(self) -> None:
        entries = [
            PartnerReportEntry("p1", "AS2", "VAN", "202401", 90.0),
            PartnerReportEntry("P3", "SFTP", "", None, 10.0),
            PartnerReportEntry("P1", "AS2", "", "202312", 500.0),
        ]

        rows = reconcile_partner_report(self.timeline, entries)

        self.assertEqual([row.partner_id for row in rows], ["P1", "P2", "P3"])
        p1, p2, p3 = rows
        self.assertEqual(p1.status, ReconciliationStatus.MATCHED)
        self.assertEqual(p1.reported_volume, 90.0)
        self.assertEqual(p1.variance, 10.0)
        self.assertAlmostEqual(p1.variance_ratio, 10.0 / 90.0)
        self.assertEqual(p1.mailbox_types, ("VAN",))
        self.assertEqual(p2.status, ReconciliationStatus.MISSING_FROM_REPORT)
        self.assertIsNone(p2.variance_ratio)
        self.assertEqual(p3.status, ReconciliationStatus.MISSING_FROM_DATASET)
        self.assertEqual(p3.variance, -10.0)


class TestMapCoverage(unittest.TestCase):
    def test_uncovered_pairs_and_unused_maps(self) -> None:
        timeline = aggregate(
            [
                [
                    _record(TableKind.TP_DOC_SUMMARY, "P1 | 850", 10, partner_id="P1", document_type="850"),
                    _record(TableKind.TP_DOC_SUMMARY, "P2 | 810", 5, partner_id="P2", document_type="810"),
                ]
            ]
        )
        maps = [
            MapConfigEntry("Inbound", "p1", "ACME", "850", "MAP_850_IN"),
            MapConfigEntry("Outbound", "ACME", "P9", "856", "MAP_856_OUT"),
        ]

        coverage = map_coverage(timeline, maps)

        self.assertEqual([(p.partner_id, p.document_type) for p in coverage.covered], [("P1", "850")])
        self.assertEqual([(p.partner_id, p.document_type) for p in coverage.uncovered], [("P2", "810")])
        self.assertEqual(coverage.unused_maps, ("MAP_856_OUT",))
        self.assertEqual(dict(coverage.maps_by_direction), {"inbound": 1, "outbound": 1})
