import hashlib

import pytest

from app.document.filters import (
    CourseIs,
    FacultyIs,
    MajorIs,
    StatusIs,
    TextContains,
    UniversityIs,
    build_document_filters,
    to_clauses,
)
from app.document.fingerprint import fingerprint


class TestFingerprint:
    def test_is_hex_sha256(self):
        content = b"%PDF-1.4 some bytes"
        digest = fingerprint(content)
        assert digest == hashlib.sha256(content).hexdigest()
        assert len(digest) == 64

    def test_single_byte_change_changes_digest(self):
        assert fingerprint(b"abc") != fingerprint(b"abd")


class TestBuildDocumentFilters:
    def test_no_filters_only_restricts_status(self):
        assert build_document_filters() == [StatusIs("approved")]

    def test_every_supplied_filter_becomes_a_predicate(self):
        predicates = build_document_filters(
            university_id=1, faculty_id=2, major_id=3, course_id=4, search="algo"
        )
        assert predicates == [
            StatusIs("approved"),
            UniversityIs(1),
            FacultyIs(2),
            MajorIs(3),
            CourseIs(4),
            TextContains("algo"),
        ]

    def test_empty_search_is_ignored(self):
        assert build_document_filters(search="") == [StatusIs("approved")]


class TestToClauses:
    def test_one_clause_per_predicate(self):
        clauses = to_clauses(build_document_filters(major_id=3, search="algo"))
        assert len(clauses) == 3

    def test_values_are_bound_not_inlined(self):
        (clause,) = to_clauses([TextContains("x' OR 1=1 --")])
        sql = str(clause.compile())
        assert "OR 1=1" not in sql

    def test_unknown_predicate_is_rejected(self):
        with pytest.raises(TypeError):
            to_clauses([object()])
