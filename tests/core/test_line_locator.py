# tests/core/test_line_locator.py
import textwrap

import pytest

from a11y_auditor.model import ElementContext, Finding
from a11y_auditor.services.line_locator_service import LineLocator, locate_findings, value_pattern


def source(text):
    return textwrap.dedent(text).lstrip("\n")


def test_matches_on_id():
    locator = LineLocator(source("""
        <div class="form">
          <input id="email" type="text">
        </div>
    """))
    assert locator.find_line(ElementContext(tag="input", id="email")) == 2


def test_id_must_match_exactly():
    locator = LineLocator(source("""
        <p id="ab">Een</p>
        <p id="a">Twee</p>
    """))
    assert locator.find_line(ElementContext(tag="p", id="a")) == 2


def test_placeholder_id_matches_erb_tag():
    """Test dat een placeholder in het id matcht op de ERB-expressie in de bron."""
    locator = LineLocator(source("""
        <ul>
          <% @items.each do |item| %>
          <li id="item_<%= item.id %>"><%= item.name %></li>
          <% end %>
        </ul>
    """))
    assert locator.find_line(ElementContext(tag="li", id="item_ERB_OUTPUT")) == 3


def test_text_prefix_distinguishes_headings():
    locator = LineLocator(source("""
        <h2>Intro</h2>
        <h2>Details van de post</h2>
    """))
    assert locator.find_line(ElementContext(tag="h2", text="Details van de post")) == 2


def test_helper_call_with_literal():
    """Test dat een element gegenereerd door een helper op de helper-regel terechtkomt."""
    locator = LineLocator(source("""
        <img src="other.png" alt="">
        <%= image_tag "logo.png" %>
    """))
    assert locator.find_line(ElementContext(tag="img", src="logo.png")) == 2


def test_falls_back_to_first_tag_open():
    locator = LineLocator(source("""
        <p>Tekst</p>
        <table>
          <tr><td>1</td></tr>
        </table>
    """))
    assert locator.find_line(ElementContext(tag="table")) == 2


def test_falls_back_to_any_helper_call():
    locator = LineLocator(source("""
        <p>Tekst</p>
        <%= link_to edit_post_path(post) do %>
    """))
    assert locator.find_line(ElementContext(tag="a")) == 2


@pytest.mark.parametrize("occurrence, expected", [(0, 1), (1, 2), (2, 3), (7, 3)])
def test_occurrence_selects_nth_match(occurrence, expected):
    locator = LineLocator('<img src="a.png">\n<img src="a.png">\n<img src="a.png">\n')
    assert locator.find_line(ElementContext(tag="img", src="a.png"), occurrence) == expected


def test_no_match_and_page_targets():
    locator = LineLocator("<p>Tekst</p>")
    assert locator.find_line(ElementContext(tag="table")) is None
    assert locator.find_line(ElementContext(tag="page", text="Page has no MAIN landmark")) is None


def test_locate_findings_spreads_identical_elements():
    findings = [
        Finding(rule_id="image_alt_text", message="Image missing alt attribute",
                element=ElementContext(tag="img", src="a.png"))
        for _ in range(2)
    ]
    located = locate_findings(findings, '<img src="a.png">\n<img src="a.png">\n', "views/x.html.erb")

    assert [f.line for f in located] == [1, 2]
    assert {f.file for f in located} == {"views/x.html.erb"}


def test_locate_findings_respects_recorded_occurrence():
    f = Finding(rule_id="duplicate_ids", message="Duplicate ID 'a' found",
                element=ElementContext(tag="p", id="a", details={"occurrence": 1}))
    located = locate_findings([f], '<p id="a">1</p>\n<p id="a">2</p>\n', "views/x.html.erb")
    assert located[0].line == 2


def test_value_pattern_escapes_literals():
    assert value_pattern("a.b") == r"a\.b"
    assert "<%" in value_pattern("x_ERB_OUTPUT")
