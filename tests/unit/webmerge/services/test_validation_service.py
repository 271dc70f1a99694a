# -*- coding: utf-8 -*-
"""Location: ./tests/unit/webmerge/services/test_validation_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Unit tests for ValidationEngine.
"""

# Standard
import hashlib
import os
from unittest.mock import patch

# Third-Party
import pytest

# First-Party
from tests.helpers.file_times import BASE_MILLIS, now_millis, set_mtime
from webmerge.cache.reference_tracker import ReferenceTracker
from webmerge.services import validation_service
from webmerge.services.validation_service import CSS_IMG_URL_PATTERN, hex_digest, ValidationEngine
from webmerge.storage import DocumentRootResolver, LocalFileMetadataProvider


def _token(last_modified: int, size: int) -> str:
    return hashlib.md5(f"::{last_modified}#{size}".encode()).hexdigest()


@pytest.fixture
def scripts(write_file):
    """Three scripts with distinct sizes and times."""
    write_file("js/a.js", "var a;", millis=BASE_MILLIS)
    write_file("js/b.js", "var bb;", millis=BASE_MILLIS + 1000)
    write_file("js/c.js", "var ccc;", millis=BASE_MILLIS + 2000)
    return ["/js/a.js", "/js/b.js", "/js/c.js"]


class TestEtagOf:
    """Per-resource tokens."""

    def test_token_is_md5_of_time_and_size(self, engine, scripts):
        assert engine.etag_of("/js/a.js") == _token(BASE_MILLIS, 6)

    def test_missing_file(self, engine):
        assert engine.etag_of("/js/missing.js") is None

    def test_directory_is_not_a_resource(self, engine, write_file):
        write_file("js/lib/x.js")
        assert engine.etag_of("/js/lib") is None

    def test_path_outside_document_root(self, engine):
        assert engine.etag_of("/../outside.js") is None

    def test_stable_across_calls(self, engine, scripts):
        assert engine.etag_of("/js/a.js") == engine.etag_of("/js/a.js")

    def test_size_change_changes_token(self, engine, write_file, scripts):
        before = engine.etag_of("/js/a.js")
        write_file("js/a.js", "var a = 1;", millis=BASE_MILLIS)
        assert engine.etag_of("/js/a.js") != before

    def test_time_change_changes_token(self, engine, docroot, scripts):
        before = engine.etag_of("/js/a.js")
        set_mtime(docroot / "js/a.js", BASE_MILLIS + 5)
        assert engine.etag_of("/js/a.js") != before


class TestCombinedEtag:
    """Tokens for resource lists."""

    def test_single_resource_is_its_own_token(self, engine, scripts):
        assert engine.combined_etag(["/js/a.js"]) == engine.etag_of("/js/a.js")

    def test_two_resources_concatenate_without_digest(self, engine, scripts):
        combined = engine.combined_etag(["/js/a.js", "/js/b.js"])
        assert combined == engine.etag_of("/js/a.js") + engine.etag_of("/js/b.js")
        assert len(combined) == 64

    def test_more_than_two_resources_are_digested(self, engine, scripts):
        material = "".join(engine.etag_of(r) for r in scripts)
        assert engine.combined_etag(scripts) == hashlib.md5(material.encode()).hexdigest()

    def test_missing_resources_contribute_nothing(self, engine, scripts):
        assert engine.combined_etag(["/js/a.js", "/js/missing.js"]) == engine.etag_of("/js/a.js")

    def test_all_missing(self, engine):
        assert engine.combined_etag(["/js/x.js", "/js/y.js"]) is None
        assert engine.combined_etag([]) is None

    def test_stable_and_sensitive_to_each_resource(self, engine, docroot, scripts):
        first = engine.combined_etag(scripts)
        assert engine.combined_etag(scripts) == first

        set_mtime(docroot / "js/b.js", BASE_MILLIS + 99_000)
        assert engine.combined_etag(scripts) != first

    def test_order_matters(self, engine, scripts):
        assert engine.combined_etag(["/js/a.js", "/js/b.js"]) != engine.combined_etag(["/js/b.js", "/js/a.js"])


class TestIsModified:
    """ETag comparison."""

    def test_gzip_suffix_is_ignored(self, engine):
        assert engine.is_modified(["/js/a.js"], "abc123-gzip", "abc123") is False

    def test_computes_actual_when_missing(self, engine, scripts):
        actual = engine.combined_etag(["/js/a.js"])
        assert engine.is_modified(["/js/a.js"], actual) is False
        assert engine.is_modified(["/js/a.js"], f"{actual}-gzip") is False

    def test_different_tags(self, engine, scripts):
        assert engine.is_modified(["/js/a.js"], "stale") is True

    def test_no_request_tag_is_modified(self, engine, scripts):
        assert engine.is_modified(["/js/a.js"], None) is True
        assert engine.is_modified(["/js/a.js"], None, "abc") is True

    def test_undeterminable_actual_is_modified(self, engine):
        assert engine.is_modified(["/js/missing.js"], "abc") is True

    def test_custom_gzip_suffix(self, docroot):
        engine = ValidationEngine(DocumentRootResolver(str(docroot)), gzip_suffix=";gz")
        assert engine.is_modified([], "abc;gz", "abc") is False


class TestModificationTimes:
    """Last-Modified helpers."""

    def test_is_any_modified_since(self, engine, scripts):
        assert engine.is_any_modified_since(scripts, BASE_MILLIS) is True
        assert engine.is_any_modified_since(scripts, BASE_MILLIS + 1999) is True
        assert engine.is_any_modified_since(scripts, BASE_MILLIS + 2000) is False

    def test_is_any_modified_since_empty_list(self, engine):
        assert engine.is_any_modified_since([], 0) is False

    def test_unresolvable_resources_are_skipped(self, engine, scripts):
        assert engine.is_any_modified_since(["/../x.js", "/js/a.js"], BASE_MILLIS - 1) is True
        assert engine.last_modified_of(["/../x.js", "/js/a.js"]) == BASE_MILLIS

    def test_last_modified_of(self, engine, scripts):
        assert engine.last_modified_of(scripts) == BASE_MILLIS + 2000
        assert engine.last_modified_of(["/js/missing.js"]) == 0
        assert engine.last_modified_of([]) == 0


class TestStylesheetReferences:
    """Image freshness propagating into stylesheet tokens."""

    def test_newer_image_touches_stylesheet_and_changes_token(self, engine, files, docroot, write_file):
        recent = now_millis() - 10_000
        css = write_file("css/site.css", "body { background: url('../img/bg.png') no-repeat; }", millis=recent - 600_000)
        image = write_file("img/bg.png", "png", millis=recent - 900_000)

        before = engine.etag_of("/css/site.css")
        assert engine.tracker.references_of(str(css)) == (str(image),)

        set_mtime(image, recent)
        after = engine.etag_of("/css/site.css")

        assert after != before
        assert files.last_modified(str(css)) >= files.last_modified(str(image))
        assert engine.etag_of("/css/site.css") == after

    def test_first_scan_touches_when_image_already_newer(self, engine, files, write_file):
        css = write_file("css/site.css", ".a { background: url(../img/a.png) }", millis=BASE_MILLIS)
        write_file("img/a.png", "png", millis=BASE_MILLIS + 1000)

        engine.etag_of("/css/site.css")
        assert files.last_modified(str(css)) > BASE_MILLIS + 1000

    def test_short_circuit_stops_at_first_touch(self, engine, docroot, write_file):
        css = write_file("css/site.css", ".a { background: url(a.png) }\n.b { background: url(b.png) }", millis=BASE_MILLIS)
        write_file("css/a.png", "a", millis=BASE_MILLIS + 1000)
        write_file("css/b.png", "b", millis=BASE_MILLIS + 1000)

        engine.etag_of("/css/site.css")
        assert engine.tracker.references_of(str(css)) == (str(docroot / "css/a.png"),)

    def test_full_scan_when_short_circuit_disabled(self, docroot, files, write_file):
        engine = ValidationEngine(DocumentRootResolver(str(docroot)), files=files, short_circuit_scan=False)
        css = write_file("css/site.css", ".a { background: url(a.png) } .b { background: url(b.png) }", millis=BASE_MILLIS)
        write_file("css/a.png", "a", millis=BASE_MILLIS + 1000)
        write_file("css/b.png", "b", millis=BASE_MILLIS + 1000)

        engine.etag_of("/css/site.css")
        assert engine.tracker.references_of(str(css)) == (str(docroot / "css/a.png"), str(docroot / "css/b.png"))

    def test_external_references_are_ignored(self, engine, docroot, write_file):
        content = "\n".join(
            [
                ".a { background: url(http://cdn.example.com/a.png) }",
                ".b { background: url(//cdn.example.com/b.png) }",
                '.c { background: url("data:image/png;base64,AAAA") }',
                ".d { background: URL( ../img/d.png ) }",
            ]
        )
        css = write_file("css/site.css", content, millis=BASE_MILLIS)
        write_file("img/d.png", "d", millis=BASE_MILLIS - 1000)

        engine.etag_of("/css/site.css")
        assert engine.tracker.references_of(str(css)) == (str(docroot / "img/d.png"),)

    def test_absolute_references_resolve_through_document_root(self, engine, docroot, write_file):
        css = write_file("css/site.css", ".a { background: url(/img/abs.png) }", millis=BASE_MILLIS)
        write_file("img/abs.png", "a", millis=BASE_MILLIS - 1000)

        engine.etag_of("/css/site.css")
        assert engine.tracker.references_of(str(css)) == (str(docroot / "img/abs.png"),)

    def test_relative_references_stay_inside_document_root(self, engine, files, docroot, write_file):
        css = write_file("css/site.css", ".a { background: url(../../outside.png) }", millis=BASE_MILLIS)
        outside = docroot.parent / "outside.png"
        outside.write_text("png", encoding="utf-8")
        set_mtime(outside, BASE_MILLIS + 60_000)

        engine.etag_of("/css/site.css")

        assert engine.tracker.references_of(str(css)) == ()
        assert files.last_modified(str(css)) == BASE_MILLIS

    def test_relative_references_climbing_past_root_are_clamped(self, engine, docroot, write_file):
        css = write_file("css/site.css", ".a { background: url(../../../img/bg.png) }", millis=BASE_MILLIS)
        write_file("img/bg.png", "png", millis=BASE_MILLIS - 1000)

        engine.etag_of("/css/site.css")
        assert engine.tracker.references_of(str(css)) == (str(docroot / "img/bg.png"),)

    def test_query_and_fragment_are_stripped(self, engine, docroot, write_file):
        css = write_file("css/site.css", "@font-face { src: url('../fonts/i.woff?v=4#iefix') }", millis=BASE_MILLIS)
        write_file("fonts/i.woff", "f", millis=BASE_MILLIS - 1000)

        engine.etag_of("/css/site.css")
        assert engine.tracker.references_of(str(css)) == (str(docroot / "fonts/i.woff"),)

    def test_known_stylesheet_is_not_rescanned(self, engine, docroot, write_file):
        css = write_file("css/site.css", ".a { background: url(a.png) }", millis=BASE_MILLIS)
        write_file("css/a.png", "a", millis=BASE_MILLIS - 1000)
        engine.etag_of("/css/site.css")

        with patch.object(engine.files, "read_lines", wraps=engine.files.read_lines) as read_lines:
            engine.etag_of("/css/site.css")
        read_lines.assert_not_called()
        assert engine.tracker.references_of(str(css)) == (str(docroot / "css/a.png"),)

    def test_vanished_image_is_dropped_on_next_check(self, engine, docroot, write_file):
        css = write_file("css/site.css", ".a { background: url(a.png) }", millis=BASE_MILLIS)
        image = write_file("css/a.png", "a", millis=BASE_MILLIS - 1000)
        engine.etag_of("/css/site.css")

        os.remove(image)
        assert engine.etag_of("/css/site.css") == _token(BASE_MILLIS, os.path.getsize(css))
        assert engine.tracker.references_of(str(css)) == ()

    def test_stylesheet_without_images_gets_plain_token(self, engine, write_file):
        css = write_file("css/plain.css", "body { color: red; }", millis=BASE_MILLIS)
        assert engine.etag_of("/css/plain.css") == _token(BASE_MILLIS, os.path.getsize(css))
        assert engine.tracker.has_references(str(css)) is False

    def test_read_failure_is_logged_and_token_still_computed(self, docroot, write_file, caplog):
        class BrokenReads(LocalFileMetadataProvider):
            def read_lines(self, path):
                raise PermissionError("denied")

        files = BrokenReads()
        engine = ValidationEngine(DocumentRootResolver(str(docroot)), files=files, tracker=ReferenceTracker(files))
        css = write_file("css/site.css", ".a { background: url(a.png) }", millis=BASE_MILLIS)

        with caplog.at_level("WARNING"):
            token = engine.etag_of("/css/site.css")

        assert token == _token(BASE_MILLIS, os.path.getsize(css))
        assert "Failed to read/touch" in caplog.text


def test_css_pattern_variants():
    line = "a{background:url(x.png)} b{background:url( 'y.png' )} c{background:url(\"z.png\")}"
    assert [m.group(1).strip() for m in CSS_IMG_URL_PATTERN.finditer(line)] == ["x.png", "y.png", "z.png"]


def test_hex_digest_is_md5():
    assert hex_digest(b"abc") == "900150983cd24fb0d6963f7d28e17f72"


def test_hex_digest_falls_back_to_raw_bytes_without_md5():
    with patch("webmerge.services.validation_service.hashlib.md5", side_effect=ValueError("disabled for FIPS")):
        assert hex_digest(b"ab") == "6162"


def test_header_date_delegates():
    assert ValidationEngine.parse_header_date("Thu, 01 Jan 1970 00:00:01 GMT") == 1000
    assert ValidationEngine.format_header_date(1000) == "Thu, 01 Jan 1970 00:00:01 GMT"
    assert ValidationEngine.parse_header_date("garbage") is None


def test_get_validation_engine_uses_settings(tmp_path):
    validation_service.get_validation_engine.cache_clear()
    try:
        with patch.object(validation_service, "settings") as mock_settings:
            mock_settings.document_root = str(tmp_path)
            mock_settings.short_circuit_reference_scan = False
            mock_settings.gzip_etag_suffix = "-br"
            engine = validation_service.get_validation_engine()

        assert engine.resolver.root == str(tmp_path)
        assert engine.short_circuit_scan is False
        assert engine.gzip_suffix == "-br"
        assert validation_service.get_validation_engine() is engine
    finally:
        validation_service.get_validation_engine.cache_clear()
