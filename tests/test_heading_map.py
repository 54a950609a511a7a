"""Tests for heading_map.py."""

from transync.heading_map import (
    clean_heading,
    extract_heading_map,
    inject_heading_map,
    lookup,
    serialize_heading_map,
    update,
)
from transync.sections import iter_headings, parse_sections

SOURCE = "## A\n\ntext\n\n## B\n\ntext\n\n### B1\n\ntext\n"
TARGET = "## 甲\n\n文\n\n## 乙\n\n文\n\n### 乙一\n\n文\n"


class TestLookup:
    def test_strips_markers(self):
        assert clean_heading("  ## Overview  ") == "Overview"
        assert lookup("## Overview", {"Overview": "概述"}) == "概述"

    def test_missing(self):
        assert lookup("Other", {"Overview": "概述"}) is None

    def test_parent_path_first(self):
        table = {"Models::Overview": "模型概述", "Overview": "概述"}
        assert lookup("Overview", table, parent_path="Models") == "模型概述"
        assert lookup("Overview", table, parent_path="Results") == "概述"


class TestUpdate:
    def test_pairs_by_position(self):
        table = update({}, parse_sections(SOURCE).sections, parse_sections(TARGET).sections)
        assert table == {"A": "甲", "B": "乙", "B1": "乙一"}
        assert list(table) == ["A", "B", "B1"]

    def test_prunes_stale_keys(self):
        existing = {"Old heading": "旧", "A": "甲"}
        table = update(existing, parse_sections(SOURCE).sections, parse_sections(TARGET).sections)
        assert "Old heading" not in table

    def test_key_set_is_current_headings(self):
        source = parse_sections(SOURCE).sections
        table = update({"Gone": "无"}, source, parse_sections(TARGET).sections, "Title", "标题")
        expected = {"Title"} | {clean_heading(s.heading) for s in iter_headings(source)}
        assert set(table) == expected
        assert list(table)[0] == "Title"
        assert table["Title"] == "标题"

    def test_title_keeps_existing_translation(self):
        table = update({"Title": "标题"}, [], [], title_heading="# Title")
        assert table == {"Title": "标题"}

    def test_live_heading_without_counterpart_keeps_entry(self):
        source = parse_sections(SOURCE + "\n## C\n\ntext\n").sections
        table = update({"C": "丙"}, source, parse_sections(TARGET).sections)
        assert table["C"] == "丙"

    def test_fresh_pairing_overrides_existing(self):
        table = update(
            {"A": "旧甲"}, parse_sections(SOURCE).sections, parse_sections(TARGET).sections
        )
        assert table["A"] == "甲"


class TestPersistence:
    def test_extract(self):
        content = "---\ntitle: Doc\nheading-map:\n  A: 甲\n  B: 乙\n---\n\n# 标题\n"
        assert extract_heading_map(content) == {"A": "甲", "B": "乙"}

    def test_extract_without_frontmatter(self):
        assert extract_heading_map("# Title\n") == {}

    def test_extract_malformed_yaml(self):
        assert extract_heading_map("---\nheading-map: [\n---\n\n# T\n") == {}

    def test_extract_non_mapping(self):
        assert extract_heading_map("---\nheading-map: just text\n---\n") == {}

    def test_serialize(self):
        assert serialize_heading_map({}) == ""
        assert serialize_heading_map({"A": "甲"}) == "heading-map:\n  A: 甲"

    def test_inject_creates_frontmatter(self):
        result = inject_heading_map("# T\n", {"A": "甲"})
        assert result == "---\nheading-map:\n  A: 甲\n---\n\n# T\n"

    def test_inject_preserves_other_keys(self):
        content = "---\ntitle: Doc\n---\n\n# T\n"
        result = inject_heading_map(content, {"A": "甲"})
        assert result == "---\ntitle: Doc\nheading-map:\n  A: 甲\n---\n\n# T\n"

    def test_inject_replaces_existing_table(self):
        content = "---\nheading-map:\n  Old: 旧\n---\n\n# T\n"
        result = inject_heading_map(content, {"A": "甲"})
        assert extract_heading_map(result) == {"A": "甲"}
        assert "Old" not in result

    def test_inject_empty_removes_block(self):
        content = "---\nheading-map:\n  A: 甲\n---\n\n# T\n"
        assert inject_heading_map(content, {}) == "# T\n"

    def test_inject_empty_keeps_other_keys(self):
        content = "---\ntitle: Doc\nheading-map:\n  A: 甲\n---\n\n# T\n"
        assert inject_heading_map(content, {}) == "---\ntitle: Doc\n---\n\n# T\n"

    def test_inject_empty_without_frontmatter(self):
        assert inject_heading_map("# T\n", {}) == "# T\n"

    def test_inject_malformed_left_alone(self):
        content = "---\nheading-map: [\n---\n\n# T\n"
        assert inject_heading_map(content, {"A": "甲"}) == content

    def test_round_trip_through_yaml(self):
        table = {"Economic Models": "经济模型", "Key: Results": "关键：结果"}
        assert extract_heading_map(inject_heading_map("# T\n", table)) == table
