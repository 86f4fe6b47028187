"""Tests for publish/sections.py: splice_section and SectionPatcher."""

from __future__ import annotations

import pytest
from conftest import MemoryStore, concurrent_writer

from sitepress.errors import (
    SitepressNotFoundError,
    SitepressSectionNotFoundError,
    SitepressValidationError,
)
from sitepress.models import SectionMarker
from sitepress.publish.sections import SectionPatcher, patch_message, splice_section

START = "<!-- SECTION:{}:start -->"
END = "<!-- SECTION:{}:end -->"


def _doc(*parts: tuple[str, str], prefix: str = "", suffix: str = "") -> str:
    body = "".join(
        f"{START.format(name)}{inner}{END.format(name)}\n" for name, inner in parts
    )
    return f"{prefix}{body}{suffix}"


# =========================================================================
# splice_section
# =========================================================================


class TestSpliceSection:
    def test_replaces_interior_only(self):
        doc = "A<!-- SECTION:x:start -->B<!-- SECTION:x:end -->C"
        assert (
            splice_section(doc, SectionMarker("x"), "D")
            == "A<!-- SECTION:x:start -->D<!-- SECTION:x:end -->C"
        )

    def test_empty_interior_can_be_filled(self):
        doc = "<!-- SECTION:x:start --><!-- SECTION:x:end -->"
        assert splice_section(doc, SectionMarker("x"), "new") == (
            "<!-- SECTION:x:start -->new<!-- SECTION:x:end -->"
        )

    def test_interior_can_be_cleared(self):
        doc = "<!-- SECTION:x:start -->old<!-- SECTION:x:end -->"
        assert splice_section(doc, SectionMarker("x"), "") == (
            "<!-- SECTION:x:start --><!-- SECTION:x:end -->"
        )

    def test_other_sections_untouched(self):
        doc = _doc(("hero", "<h1>Hi</h1>"), ("footer", "<p>c</p>"), prefix="<body>\n")
        out = splice_section(doc, SectionMarker("hero"), "<h1>Bye</h1>")
        assert out == _doc(("hero", "<h1>Bye</h1>"), ("footer", "<p>c</p>"), prefix="<body>\n")

    def test_malformed_replacement_inserted_verbatim(self):
        doc = _doc(("a", "x"), ("b", "y"))
        payload = "<div><!-- SECTION:b:end --> <script>if (a < b {"
        out = splice_section(doc, SectionMarker("a"), payload)
        assert out.startswith(START.format("a") + payload + END.format("a"))
        assert out.endswith(f"{START.format('b')}y{END.format('b')}\n")

    def test_missing_start_raises(self):
        doc = "A<!-- SECTION:x:end -->C"
        with pytest.raises(SitepressSectionNotFoundError) as exc_info:
            splice_section(doc, SectionMarker("x"), "D")
        assert exc_info.value.context["start_found"] is False
        assert exc_info.value.context["end_found"] is True

    def test_missing_end_raises(self):
        doc = "A<!-- SECTION:x:start -->C"
        with pytest.raises(SitepressSectionNotFoundError) as exc_info:
            splice_section(doc, SectionMarker("x"), "D")
        assert exc_info.value.context["end_found"] is False

    def test_end_before_start_raises(self):
        doc = "<!-- SECTION:x:end -->B<!-- SECTION:x:start -->"
        with pytest.raises(SitepressSectionNotFoundError):
            splice_section(doc, SectionMarker("x"), "D")

    def test_only_first_marker_pair_used(self):
        doc = (
            "<!-- SECTION:x:start -->1<!-- SECTION:x:end -->"
            "<!-- SECTION:x:start -->2<!-- SECTION:x:end -->"
        )
        out = splice_section(doc, SectionMarker("x"), "N")
        assert out == (
            "<!-- SECTION:x:start -->N<!-- SECTION:x:end -->"
            "<!-- SECTION:x:start -->2<!-- SECTION:x:end -->"
        )

    def test_similar_section_names_not_confused(self):
        doc = _doc(("hero2", "keep"), ("hero", "old"))
        out = splice_section(doc, SectionMarker("hero"), "new")
        assert out == _doc(("hero2", "keep"), ("hero", "new"))


# =========================================================================
# SectionPatcher
# =========================================================================


class TestSectionPatcher:
    async def test_patches_index_html(self, policy, config, store: MemoryStore):
        store.seed("mon-cafe/index.html", "A<!-- SECTION:x:start -->B<!-- SECTION:x:end -->C")
        patcher = SectionPatcher(policy, config)

        result = await patcher.patch("mon-cafe", "x", "D")

        assert store.text("mon-cafe/index.html") == (
            "A<!-- SECTION:x:start -->D<!-- SECTION:x:end -->C"
        )
        assert result.path == "mon-cafe/index.html"
        assert result.write.changed is True
        assert store.commits == [("mon-cafe/index.html", patch_message("mon-cafe", "x"))]

    async def test_slug_and_section_normalized(self, policy, config, store):
        store.seed("mon-cafe/index.html", _doc(("herobanner", "old")))
        patcher = SectionPatcher(policy, config)

        result = await patcher.patch("Mon Café!", "Hero Banner", "new")

        assert result.slug == "mon-cafe"
        assert result.section == "herobanner"
        assert store.text("mon-cafe/index.html") == _doc(("herobanner", "new"))
        assert store.commits[0][1] == "Patch section 'herobanner' of mon-cafe"

    async def test_missing_document_raises_not_found(self, policy, config, store):
        patcher = SectionPatcher(policy, config)
        with pytest.raises(SitepressNotFoundError) as exc_info:
            await patcher.patch("ghost", "x", "D")
        assert exc_info.value.context["path"] == "ghost/index.html"
        assert store.write_attempts == []

    async def test_missing_section_leaves_document_unchanged(self, policy, config, store, sleep):
        original = _doc(("hero", "old"))
        token = store.seed("s/index.html", original)
        patcher = SectionPatcher(policy, config)

        with pytest.raises(SitepressSectionNotFoundError) as exc_info:
            await patcher.patch("s", "pricing", "new")

        assert exc_info.value.context["path"] == "s/index.html"
        assert store.text("s/index.html") == original
        assert store.token("s/index.html") == token
        assert store.write_attempts == []
        assert sleep.delays == []

    async def test_invalid_inputs_rejected_before_store_access(self, policy, config, store):
        patcher = SectionPatcher(policy, config)
        with pytest.raises(SitepressValidationError):
            await patcher.patch("!!!", "x", "D")
        with pytest.raises(SitepressValidationError):
            await patcher.patch("s", "   ", "D")
        with pytest.raises(SitepressValidationError):
            await patcher.patch("s", "x", None)  # type: ignore[arg-type]
        assert store.reads == []

    async def test_conflict_resplices_fresh_document(self, policy, config, store):
        store.seed("s/index.html", _doc(("hero", "h0"), ("footer", "f0")))
        # Another writer patches the footer between our read and our write.
        store.before_write.append(
            concurrent_writer(_doc(("hero", "h0"), ("footer", "f1")))
        )
        patcher = SectionPatcher(policy, config)

        result = await patcher.patch("s", "hero", "h1")

        assert result.write.attempts == 2
        assert store.text("s/index.html") == _doc(("hero", "h1"), ("footer", "f1"))

    async def test_same_content_is_noop(self, policy, config, store):
        store.seed("s/index.html", _doc(("hero", "same")))
        result = await SectionPatcher(policy, config).patch("s", "hero", "same")
        assert result.write.changed is False
        assert store.commits == []

    async def test_undecodable_document_raises_validation_error(self, policy, config, store):
        raw = b"\xff<!-- SECTION:x:start -->a<!-- SECTION:x:end -->"
        token = store.seed("s/index.html", raw)

        with pytest.raises(SitepressValidationError) as exc_info:
            await SectionPatcher(policy, config).patch("s", "x", "b")

        assert exc_info.value.context["path"] == "s/index.html"
        assert isinstance(exc_info.value.cause, UnicodeDecodeError)
        assert store.files["s/index.html"] == (raw, token)
        assert store.write_attempts == []
