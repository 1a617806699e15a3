"""In-memory filtering, option lists and ordering."""

from datetime import date
from types import SimpleNamespace

from hypothesis import given, strategies as st

from store_core.app.models import AccessType, UserRole
from store_core.app.services.query import (
    INWARD_ORDER, MATERIAL_QUERY, PROJECT_QUERY, USER_QUERY, SortOrder,
    apply_sort, filter_options, normalize_options, project_prefix, query,
)


def _material(code, name="", category=None, unit=None, line_type=None, part_no=None):
    return SimpleNamespace(code=code, name=name, category=category, unit=unit,
                           line_type=line_type, part_no=part_no)


MATERIALS = [
    _material("CEM-01", "Portland Cement", category="Civil", unit="BAG", line_type="SUPPLY"),
    _material("STL-12", "TMT Bar 12mm", category="Civil", unit="KG", line_type="SUPPLY", part_no="TMT12"),
    _material("CAB-04", "Copper Cable", category=" Electrical ", unit="M", line_type="SITC"),
    _material("PIP-02", "GI Pipe", category="", unit="M", line_type=None),
]


class TestQuery:

    def test_no_filters_returns_everything_in_order(self):
        assert query(MATERIALS, MATERIAL_QUERY) == MATERIALS

    def test_or_within_dimension(self):
        result = query(MATERIALS, MATERIAL_QUERY, filters={"unit": ["KG", "BAG"]})
        assert [m.code for m in result] == ["CEM-01", "STL-12"]

    def test_and_across_dimensions(self):
        result = query(MATERIALS, MATERIAL_QUERY, filters={"unit": ["M"], "line_type": ["SITC"]})
        assert [m.code for m in result] == ["CAB-04"]

    def test_filter_values_are_trimmed_and_blank_ignored(self):
        result = query(MATERIALS, MATERIAL_QUERY, filters={"category": ["Electrical ", ""]})
        assert [m.code for m in result] == ["CAB-04"]

    def test_only_blank_filter_values_mean_no_restriction(self):
        assert query(MATERIALS, MATERIAL_QUERY, filters={"category": ["", "  "]}) == MATERIALS

    def test_search_is_case_insensitive_substring(self):
        assert [m.code for m in query(MATERIALS, MATERIAL_QUERY, search="cable")] == ["CAB-04"]
        assert [m.code for m in query(MATERIALS, MATERIAL_QUERY, search="tmt12")] == ["STL-12"]

    def test_search_and_filter_combine(self):
        result = query(MATERIALS, MATERIAL_QUERY, filters={"category": ["Civil"]}, search="bar")
        assert [m.code for m in result] == ["STL-12"]

    def test_unknown_dimension_ignored(self):
        assert query(MATERIALS, MATERIAL_QUERY, filters={"colour": ["red"]}) == MATERIALS


class TestFilterOptions:

    def test_options_trimmed_deduplicated_sorted(self):
        options = filter_options(MATERIALS, MATERIAL_QUERY)
        assert options == {
            "category": ["Civil", "Electrical"],
            "unit": ["BAG", "KG", "M"],
            "line_type": ["SITC", "SUPPLY"],
        }

    def test_normalize_options(self):
        assert normalize_options([" b", "a", "", None, "b"]) == ["a", "b"]

    def test_user_options_use_enum_values(self):
        users = [
            SimpleNamespace(name="A", email="a@x", role=UserRole.ADMIN, access_type=AccessType.ALL,
                            projects=[SimpleNamespace(id=2)]),
            SimpleNamespace(name="B", email="b@x", role=UserRole.USER, access_type=AccessType.PROJECTS,
                            projects=[SimpleNamespace(id=1), SimpleNamespace(id=2)]),
        ]
        options = filter_options(users, USER_QUERY)
        assert options["role"] == ["ADMIN", "USER"]
        assert options["access_type"] == ["ALL", "PROJECTS"]
        assert options["project_id"] == ["1", "2"]
        assert [u.name for u in query(users, USER_QUERY, filters={"project_id": ["1"]})] == ["B"]

    @given(st.lists(st.sampled_from(["BAG", "KG", "M", " M", "", "NOS"]), max_size=6))
    def test_options_cover_filtered_results(self, wanted):
        options = filter_options(MATERIALS, MATERIAL_QUERY)
        for material in query(MATERIALS, MATERIAL_QUERY, filters={"unit": wanted}):
            if material.unit:
                assert material.unit.strip() in options["unit"]


class TestProjects:

    def test_prefix(self):
        assert project_prefix("prj-0042") == "PRJ"
        assert project_prefix("  HQ12") == "HQ"
        assert project_prefix("0042") is None
        assert project_prefix(None) is None

    def test_prefix_filter(self):
        projects = [SimpleNamespace(code="PRJ-1", name="One"), SimpleNamespace(code="HQ-2", name="Two")]
        assert [p.code for p in query(projects, PROJECT_QUERY, filters={"prefix": ["HQ"]})] == ["HQ-2"]


class TestSort:

    def test_newest_first_undated_last_stable_ties(self):
        records = [
            SimpleNamespace(id=1, entry_date=date(2024, 1, 1)),
            SimpleNamespace(id=2, entry_date=None),
            SimpleNamespace(id=3, entry_date=date(2024, 3, 1)),
            SimpleNamespace(id=4, entry_date=date(2024, 1, 1)),
        ]
        assert [r.id for r in apply_sort(records, INWARD_ORDER)] == [3, 1, 4, 2]

    def test_no_order_keeps_input(self):
        assert apply_sort([3, 1, 2], None) == [3, 1, 2]

    def test_ascending(self):
        assert apply_sort([3, 1, 2], SortOrder(key=lambda v: v)) == [1, 2, 3]
