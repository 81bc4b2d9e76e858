"""
Unit tests for the check battery.

Each check is a pure function of the parsed document, so these tests parse
small HTML snippets and inspect the single finding returned.
"""
import pytest

from seo_geo_audit.checks import (
    check_canonical_tag,
    check_h1_tag,
    check_heading_structure,
    check_image_alt_text,
    check_linking_profile,
    check_meta_description,
    check_meta_robots,
    check_meta_title,
    check_open_graph_tags,
    check_schema_markup,
    order_findings,
    run_checks,
)
from seo_geo_audit.auditor import audit_document
from seo_geo_audit.document import parse_document, resolve_url
from seo_geo_audit.models import (
    CANONICAL_ORDER,
    AnchorListData,
    ListData,
    Status,
    TableData,
    TextData,
)

PAGE_URL = "https://example.com/page"


def soup_for(body: str, head: str = "", url: str = PAGE_URL):
    return parse_document(f"<html><head>{head}</head><body>{body}</body></html>", url)


class TestDocument:
    """Test markup parsing and base URL injection."""

    def test_base_injected(self):
        soup = soup_for("<p>Hi</p>")
        assert soup.find("base")["href"] == PAGE_URL

    def test_existing_base_overwritten(self):
        soup = soup_for("<p>Hi</p>", head='<base href="https://cdn.example.net/">')
        bases = soup.find_all("base")
        assert len(bases) == 1
        assert bases[0]["href"] == PAGE_URL

    def test_fragment_without_head(self):
        soup = parse_document("<p>bare</p>", PAGE_URL)
        assert soup.find("base")["href"] == PAGE_URL

    def test_resolve_url(self):
        soup = soup_for("<p>x</p>")
        assert resolve_url(soup, " /about ") == "https://example.com/about"

    def test_resolve_invalid_url(self):
        assert resolve_url(soup_for("<p>x</p>"), "http://[oops/") is None


class TestMetaTitle:
    """Test the Meta Title check."""

    def test_missing(self):
        finding = check_meta_title(soup_for("<p>x</p>"))
        assert finding.status is Status.FAIL
        assert finding.data == TextData("Not found")

    def test_exactly_60_chars_passes(self):
        title = "T" * 60
        finding = check_meta_title(soup_for("", head=f"<title>{title}</title>"))
        assert finding.status is Status.PASS
        assert "60 characters" in finding.message
        assert finding.data == TextData(title)

    def test_61_chars_warns(self):
        finding = check_meta_title(soup_for("", head=f"<title>{'T' * 61}</title>"))
        assert finding.status is Status.WARNING
        assert "61 characters" in finding.message

    def test_whitespace_only_is_missing(self):
        finding = check_meta_title(soup_for("", head="<title>   </title>"))
        assert finding.status is Status.FAIL
        assert "1 <title> tag(s) found" in finding.message


class TestMetaDescription:
    """Test the Meta Description check."""

    @pytest.mark.parametrize("length,expected", [
        (69, Status.WARNING),
        (70, Status.PASS),
        (160, Status.PASS),
        (161, Status.WARNING),
    ])
    def test_length_boundaries(self, length, expected):
        head = f'<meta name="description" content="{"d" * length}">'
        finding = check_meta_description(soup_for("", head=head))
        assert finding.status is expected
        assert f"{length} characters" in finding.message

    def test_missing(self):
        finding = check_meta_description(soup_for("<p>x</p>"))
        assert finding.status is Status.FAIL
        assert finding.message == "Meta description is missing (0 description tag(s) found, none with content)."

    def test_too_short_message(self):
        head = '<meta name="description" content="Short.">'
        finding = check_meta_description(soup_for("", head=head))
        assert "too short" in finding.message


class TestH1Tag:
    """Test the H1 Tag check."""

    def test_single_h1(self):
        finding = check_h1_tag(soup_for("<h1> Welcome </h1>"))
        assert finding.status is Status.PASS
        assert finding.message == "Exactly one H1 tag found (7 characters)."
        assert finding.data == TextData("Welcome")

    def test_missing_h1(self):
        finding = check_h1_tag(soup_for("<h2>Sub</h2>"))
        assert finding.status is Status.FAIL
        assert finding.message == "H1 tag is missing (1 lower-level heading(s) found)."

    def test_two_h1s_lists_both(self):
        finding = check_h1_tag(soup_for("<h1>First</h1><p>x</p><h1>Second</h1>"))
        assert finding.status is Status.FAIL
        assert "(2)" in finding.message
        assert finding.data == ListData(("First", "Second"))


class TestHeadingStructure:
    """Test the Heading Structure check."""

    def test_two_h1s_fail(self):
        finding = check_heading_structure(soup_for("<h1>First</h1><h1>Second</h1>"))
        assert finding.status is Status.FAIL
        assert "Found 2 H1 tags" in finding.message

    def test_no_h1_fail(self):
        finding = check_heading_structure(soup_for("<p>text</p>"))
        assert finding.status is Status.FAIL

    def test_long_page_without_h2_warns(self):
        body = "<h1>Title</h1><p>" + "word " * 400 + "</p>"
        finding = check_heading_structure(soup_for(body))
        assert finding.status is Status.WARNING
        assert finding.data.values["H2"] == 0
        assert finding.data.values["Body Length"] > 1500

    def test_short_page_without_h2_passes(self):
        finding = check_heading_structure(soup_for("<h1>Title</h1><p>Short page.</p>"))
        assert finding.status is Status.PASS

    def test_long_page_with_h2_passes(self):
        body = "<h1>Title</h1><h2>Part</h2><p>" + "word " * 400 + "</p>"
        finding = check_heading_structure(soup_for(body))
        assert finding.status is Status.PASS
        assert "1 H2" in finding.message


class TestCanonicalTag:
    """Test the Canonical Tag check."""

    def test_missing(self):
        finding = check_canonical_tag(soup_for("<p>x</p>"))
        assert finding.status is Status.FAIL
        assert "among 0 <link> element(s)" in finding.message

    def test_present_not_validated(self):
        head = '<link rel="canonical" href="https://elsewhere.example.org/other">'
        finding = check_canonical_tag(soup_for("", head=head))
        assert finding.status is Status.PASS
        assert finding.data == TextData("https://elsewhere.example.org/other")
        assert "pointing to https://elsewhere.example.org/other" in finding.message


class TestMetaRobots:
    """Test the Meta Robots check."""

    def test_absent_passes(self):
        finding = check_meta_robots(soup_for("<p>x</p>"))
        assert finding.status is Status.PASS
        assert "index, follow" in finding.message

    @pytest.mark.parametrize("content,expected", [
        ("noindex", Status.FAIL),
        ("NOINDEX, nofollow", Status.FAIL),
        ("index, nofollow", Status.WARNING),
        ("index, follow", Status.PASS),
    ])
    def test_directives(self, content, expected):
        finding = check_meta_robots(soup_for("", head=f'<meta name="robots" content="{content}">'))
        assert finding.status is expected
        assert content.lower() in finding.message


class TestImageAltText:
    """Test the Image Alt Text check."""

    def test_no_images_passes(self):
        finding = check_image_alt_text(soup_for("<p>x</p>"))
        assert finding.status is Status.PASS
        assert finding.data == TableData({"Total": 0, "MissingALT": 0})
        assert "0 <img> element(s) checked" in finding.message

    def test_all_have_alt(self):
        finding = check_image_alt_text(soup_for('<img src="/a.jpg" alt="A"><img src="/b.jpg" alt="B">'))
        assert finding.status is Status.PASS
        assert finding.message == "All 2 images have alt text."

    def test_quarter_missing_warns(self):
        body = (
            '<img src="/a.jpg" alt="A"><img src="/b.jpg" alt="B">'
            '<img src="/c.jpg" alt="C"><img src="/d.jpg">'
        )
        finding = check_image_alt_text(soup_for(body))
        assert finding.status is Status.WARNING
        assert "(25%)" in finding.message
        assert finding.data == TableData({"Total": 4, "MissingALT": 1})

    def test_half_missing_fails(self):
        body = '<img src="/a.jpg" alt="A"><img src="/b.jpg" alt="  "><img src="/c.jpg" alt="C"><img src="/d.jpg">'
        finding = check_image_alt_text(soup_for(body))
        assert finding.status is Status.FAIL
        assert "2 of 4" in finding.message

    def test_non_content_images_ignored(self):
        body = """
            <img src="data:image/png;base64,iVBORw0KGgo=">
            <img src="/track.gif" width="1" height="1">
            <img src="https://ads.example.net/pixel.gif">
            <img src="/hidden.jpg" style="display: none">
            <div style="display:none"><img src="/nested.jpg"></div>
            <img src="/attr-hidden.jpg" hidden>
        """
        finding = check_image_alt_text(soup_for(body))
        assert finding.status is Status.PASS
        assert finding.data.values["Total"] == 0

    def test_duplicates_by_resolved_source(self):
        # Both resolve to https://example.com/img/a.jpg
        body = '<img src="/img/a.jpg"><img src="https://example.com/img/a.jpg">'
        finding = check_image_alt_text(soup_for(body))
        assert finding.data == TableData({"Total": 1, "MissingALT": 1})
        assert finding.status is Status.FAIL

    def test_invalid_source_ignored(self):
        body = '<img src="http://[oops/x.png"><img src="/a.jpg" alt="A">'
        finding = check_image_alt_text(soup_for(body))
        assert finding.status is Status.PASS
        assert finding.data == TableData({"Total": 1, "MissingALT": 0})


class TestSchemaMarkup:
    """Test the Schema Markup check."""

    def test_no_schema_fails(self):
        finding = check_schema_markup(soup_for("<p>x</p>"))
        assert finding.status is Status.FAIL
        assert finding.data == TextData("Not Present")
        assert finding.message == (
            "No schema markup detected (0 JSON-LD object(s) and 0 microdata item(s) without a recognizable type)."
        )

    def test_json_ld_types(self):
        head = """
            <script type="application/ld+json">{"@type": "Organization", "name": "Acme"}</script>
            <script type="application/ld+json">[{"@type": ["Product", "Thing"]}, {"@type": "Organization"}]</script>
        """
        finding = check_schema_markup(soup_for("", head=head))
        assert finding.status is Status.PASS
        assert finding.message == "Schema markup detected. Found 3 type(s)."
        assert finding.data == TableData({"Detected Types": "Organization, Product, Thing"})

    def test_json_ld_graph(self):
        head = """<script type="application/ld+json">
            {"@context": "https://schema.org", "@graph": [{"@type": "WebSite"}, {"@type": "BreadcrumbList"}]}
        </script>"""
        finding = check_schema_markup(soup_for("", head=head))
        assert finding.data.values["Detected Types"] == "WebSite, BreadcrumbList"

    def test_malformed_json_ld_skipped(self):
        head = '<script type="application/ld+json">{"@type": "Article",</script>'
        finding = check_schema_markup(soup_for("", head=head))
        assert finding.status is Status.FAIL

    def test_malformed_block_does_not_hide_others(self):
        head = (
            '<script type="application/ld+json">{not json}</script>'
            '<script type="application/ld+json">{"@type": "FAQPage"}</script>'
        )
        finding = check_schema_markup(soup_for("", head=head))
        assert finding.status is Status.PASS
        assert finding.data.values["Detected Types"] == "FAQPage"

    def test_microdata(self):
        body = """
            <article itemscope itemtype="https://schema.org/Article">
                <span itemprop="author" itemscope itemtype="http://schema.org/Person/">Jo</span>
            </article>
            <div itemscope itemtype="not a url">ignored</div>
        """
        finding = check_schema_markup(soup_for(body))
        assert finding.status is Status.PASS
        assert finding.data.values["Detected Types"] == "Article, Person"

    def test_invalid_microdata_type_ignored(self):
        body = (
            '<div itemscope itemtype="http://[x/Thing"></div>'
            '<div itemscope itemtype="https://schema.org/Event"></div>'
        )
        finding = check_schema_markup(soup_for(body))
        assert finding.status is Status.PASS
        assert finding.data.values["Detected Types"] == "Event"

    def test_only_invalid_microdata_type(self):
        finding = check_schema_markup(soup_for('<div itemscope itemtype="http://[x/Thing"></div>'))
        assert finding.status is Status.FAIL
        assert "1 microdata item(s)" in finding.message

    def test_json_ld_and_microdata_union(self):
        head = '<script type="application/ld+json">{"@type": "Article"}</script>'
        body = '<div itemscope itemtype="https://schema.org/Article"></div>'
        finding = check_schema_markup(soup_for(body, head=head))
        assert finding.message == "Schema markup detected. Found 1 type(s)."


class TestOpenGraphTags:
    """Test the Open Graph Tags check."""

    def test_all_present(self):
        head = """
            <meta property="og:title" content="T">
            <meta property="og:description" content="D">
            <meta property="og:image" content="https://example.com/i.png">
        """
        finding = check_open_graph_tags(soup_for("", head=head))
        assert finding.status is Status.PASS
        assert finding.data.values["og:title"] == "T"

    def test_none_present(self):
        finding = check_open_graph_tags(soup_for("<p>x</p>"))
        assert finding.status is Status.FAIL
        assert "0/3 present" in finding.message

    def test_partial(self):
        head = '<meta property="og:title" content="T"><meta property="og:image" content="">'
        finding = check_open_graph_tags(soup_for("", head=head))
        assert finding.status is Status.WARNING
        assert "og:description, og:image" in finding.message
        assert finding.data == TableData({"og:title": "T"})


class TestLinkingProfile:
    """Test the Linking Profile check."""

    def test_healthy_mix(self):
        body = """
            <a href="/about">About</a>
            <a href="https://example.com/contact" rel="nofollow">Contact</a>
            <a href="https://other.example.org/">Partner</a>
        """
        finding = check_linking_profile(soup_for(body), PAGE_URL)
        assert finding.status is Status.PASS
        values = finding.data.values
        assert values["internalLinks"] == 2
        assert values["externalLinks"] == 1
        assert values["nofollowLinks"] == 1
        assert values["totalUniqueLinks"] == 3

    def test_internal_only_warns(self):
        finding = check_linking_profile(soup_for('<a href="/a">A</a><a href="/b">B</a>'), PAGE_URL)
        assert finding.status is Status.WARNING
        assert "No external links found" in finding.message

    def test_no_links_warns(self):
        finding = check_linking_profile(soup_for("<p>No links</p>"), PAGE_URL)
        assert finding.status is Status.WARNING
        assert finding.message == "No unique internal or external links found (0 anchor(s) checked)."

    def test_never_fails(self):
        finding = check_linking_profile(soup_for('<a href="#">x</a>'), PAGE_URL)
        assert finding.status is not Status.FAIL

    def test_invalid_href_ignored(self):
        body = '<a href="http://[oops/">Broken</a><a href="/about">About</a>'
        finding = check_linking_profile(soup_for(body), PAGE_URL)
        assert finding.data.values["totalUniqueLinks"] == 1
        assert finding.data.values["internalLinks"] == 1

    def test_only_invalid_href(self):
        finding = check_linking_profile(soup_for('<a href="http://[oops/">Broken</a>'), PAGE_URL)
        assert finding.status is Status.WARNING
        assert "1 anchor(s) checked" in finding.message

    def test_skips_and_dedupes(self):
        body = """
            <a href="#section">Jump</a>
            <a href="mailto:a@example.com">Mail</a>
            <a href="tel:+15555550100">Call</a>
            <a href="/about">About</a>
            <a href="https://example.com/about">About again</a>
        """
        finding = check_linking_profile(soup_for(body), PAGE_URL)
        assert finding.data.values["totalUniqueLinks"] == 1
        assert finding.data.values["internalLinks"] == 1

    def test_sample_anchors(self):
        body = '<a href="/about">About us</a><a href="https://x.example.org/"><img src="/x.png"></a>'
        finding = check_linking_profile(soup_for(body), PAGE_URL)
        anchors = finding.data.values["sampleAnchors"]
        assert isinstance(anchors, AnchorListData)
        first, second = anchors.anchors
        assert first.href == "https://example.com/about"
        assert first.is_internal is True
        assert first.type == "text"
        assert second.is_internal is False
        assert second.type == "image"

    def test_serialised_anchor_list(self):
        finding = check_linking_profile(soup_for('<a href="/about">About</a>'), PAGE_URL)
        data = finding.data.to_json()
        assert data["sampleAnchors"] == [
            {"text": "About", "href": "https://example.com/about", "isInternal": True, "type": "text"}
        ]


class TestBattery:
    """Test running the full battery."""

    def test_one_finding_per_check(self, good_page_html):
        soup = parse_document(good_page_html, "https://example.com/")
        findings = run_checks(soup, "https://example.com/")
        names = [f.check_name for f in findings]
        assert sorted(names) == sorted(CANONICAL_ORDER)

    def test_order_findings(self, good_page_html):
        soup = parse_document(good_page_html, "https://example.com/")
        ordered = order_findings(run_checks(soup, "https://example.com/"))
        assert tuple(f.check_name for f in ordered) == CANONICAL_ORDER

    def test_good_page_all_pass(self, good_page_html):
        soup = parse_document(good_page_html, "https://example.com/")
        findings = run_checks(soup, "https://example.com/")
        failing = [(f.check_name, f.message) for f in findings if f.status is not Status.PASS]
        assert failing == []

    def test_invalid_urls_do_not_degrade_audit(self, good_page_html):
        broken = (
            '<a href="http://[oops/">Broken link</a>'
            '<img src="http://[oops/x.png">'
            '<div itemscope itemtype="http://[x/Thing"></div>'
        )
        html = good_page_html.replace("</body>", broken + "</body>")

        report = audit_document(html, "https://example.com/", "https://example.com/")

        assert not report.is_degraded
        assert report.seo_score == 100
        assert report.geo_score == 100
