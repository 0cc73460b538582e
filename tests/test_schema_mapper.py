from __future__ import annotations

import unittest

from app.domain.ingestion import ColumnMapping, DatasetKind
from app.mappers.column_synonyms import DISCLOSURE_SYNONYMS, WAGE_SYNONYMS, SynonymTable
from app.mappers.schema_mapper import SchemaReconciler, normalize_header
from app.validators.mapping_validator import SchemaMappingError


class TestSchemaReconciler(unittest.TestCase):
    def setUp(self) -> None:
        self.synonyms = SynonymTable(
            dataset=DatasetKind.DISCLOSURE,
            version="test.1",
            variants={
                "case_number": "case_number",
                "casenum": "case_number",
                "employer_name": "employer_name",
            },
            required_columns=("case_number",),
        )
        self.reconciler = SchemaReconciler(self.synonyms)

    def test_normalize_header_lowercases_and_joins_whitespace(self) -> None:
        self.assertEqual(normalize_header("  Case   Number "), "case_number")
        self.assertEqual(normalize_header("H-1B_DEPENDENT"), "h-1b_dependent")

    def test_resolves_display_headers_to_indices(self) -> None:
        mapping = self.reconciler.resolve(["Case Number", "Employer Name"])

        self.assertEqual(mapping.index_of("case_number"), 0)
        self.assertEqual(mapping.index_of("employer_name"), 1)
        self.assertEqual(mapping.dataset, DatasetKind.DISCLOSURE)
        self.assertEqual(mapping.version, "test.1")

    def test_any_synonym_resolves_to_the_same_canonical_field(self) -> None:
        mapping = self.reconciler.resolve(["CASENUM", "Employer Name"])

        self.assertEqual(mapping.index_of("case_number"), 0)

    def test_first_matching_header_wins(self) -> None:
        mapping = self.reconciler.resolve(["Employer Name", "casenum", "case_number"])

        self.assertEqual(mapping.index_of("case_number"), 1)

    def test_unknown_headers_are_left_unmapped(self) -> None:
        mapping = self.reconciler.resolve(["case_number", "Internal Notes"])

        self.assertEqual(set(mapping.indices), {"case_number"})
        self.assertIsNone(mapping.cell(["A1", "note"], "employer_name"))

    def test_missing_required_column_raises(self) -> None:
        with self.assertRaises(SchemaMappingError) as ctx:
            self.reconciler.resolve(["Employer Name"])

        codes = {error.code for error in ctx.exception.errors}
        self.assertIn("required_field_unmapped", codes)

    def test_empty_headers_raise(self) -> None:
        with self.assertRaises(SchemaMappingError) as ctx:
            self.reconciler.resolve(["", "  "])

        self.assertEqual(ctx.exception.errors[0].code, "empty_headers")

    def test_resolve_line_handles_quoted_headers(self) -> None:
        mapping = self.reconciler.resolve_line('"Case Number","Employer Name"')

        self.assertEqual(mapping.index_of("employer_name"), 1)

    def test_is_compatible_checks_dataset_and_version(self) -> None:
        current = self.reconciler.resolve(["case_number"])
        stale = ColumnMapping(dataset=DatasetKind.DISCLOSURE, version="test.0", indices={"case_number": 0})

        self.assertTrue(self.reconciler.is_compatible(current))
        self.assertFalse(self.reconciler.is_compatible(stale))


class TestShippedSynonymTables(unittest.TestCase):
    def test_disclosure_table_covers_current_and_legacy_layouts(self) -> None:
        reconciler = SchemaReconciler(DISCLOSURE_SYNONYMS)

        current = reconciler.resolve(["CASE_NUMBER", "CASE_STATUS", "VISA_CLASS", "EMPLOYER_NAME"])
        legacy = reconciler.resolve(["LCA_CASE_NUMBER", "STATUS", "VISA_CLASS", "LCA_CASE_EMPLOYER_NAME"])

        self.assertEqual(current.indices, legacy.indices)

    def test_wage_table_requires_area_and_soc_codes(self) -> None:
        reconciler = SchemaReconciler(WAGE_SYNONYMS)

        mapping = reconciler.resolve(["Area", "SocCode", "Level1", "Average", "Label"])
        self.assertEqual(mapping.index_of("level_1"), 2)
        self.assertEqual(mapping.index_of("mean"), 3)

        with self.assertRaises(SchemaMappingError):
            reconciler.resolve(["Area", "Level1"])


if __name__ == "__main__":
    unittest.main()
