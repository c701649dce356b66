# tests/core/test_checks.py
import pytest

from a11y_auditor.model import Severity
from a11y_auditor.rules.checks import (
    aria_landmarks, color_contrast, duplicate_ids, form_errors, form_labels, heading,
    image_alt_text, interactive_elements, keyboard_accessibility, skip_links, table_structure
)
from a11y_auditor.rules.core import css_string


@pytest.fixture
def run(parse, context):
    """Draait één check op een stuk markup."""
    def _run(module, markup):
        return module.DEFINITION.evaluate(parse(markup), context)
    return _run


# --- Form labels ---

@pytest.mark.parametrize("markup, expected", [
    ('<input type="text" id="email">', 1),
    ('<label for="email">E-mail</label><input type="text" id="email">', 0),
    ('<input type="text" id="email" aria-label="E-mail">', 0),
    ('<span id="l">E-mail</span><input type="email" id="email" aria-labelledby="l">', 0),
    ('<input type="text" id="email" aria-label="  ">', 1),
    ('<input type="text">', 0),
    ('<input type="text" id="">', 0),
    ('<input type="hidden" id="token">', 0),
    ('<input id="plain">', 1),
    ('<textarea id="body"></textarea>', 1),
    ('<select id="country"></select>', 1),
])
def test_form_labels(run, markup, expected):
    """Test label-volledigheid: met label of aria nul findings, anders precies één."""
    findings = run(form_labels, markup)
    assert len(findings) == expected
    for f in findings:
        assert f.message == "Form input missing label"
        assert f.wcag == "1.3.1"
        assert f.file == "views/test.html.erb"


def test_form_labels_match_placeholder_ids(run):
    markup = '<label for="item_ERB_OUTPUT">Naam</label><input type="text" id="item_ERB_OUTPUT">'
    assert run(form_labels, markup) == []


# --- Alt text ---

def test_alt_text_tri_state(run):
    """Test dat alleen een ontbrekend alt-attribuut een fout is."""
    missing = run(image_alt_text, '<img src="a.png">')
    assert len(missing) == 1
    assert missing[0].message == "Image missing alt attribute"
    assert missing[0].severity == Severity.ERROR
    assert missing[0].element.src == "a.png"

    assert run(image_alt_text, '<img src="a.png" alt="">') == []
    assert run(image_alt_text, '<img src="a.png" alt="Logo">') == []


# --- Interactive elements ---

@pytest.mark.parametrize("markup, expected", [
    ('<a href="/x"></a>', 1),
    ('<button></button>', 1),
    ('<a href="/"><img src="l.png" alt="Home"></a>', 0),
    ('<a href="/"><img src="l.png" alt=""></a>', 1),
    ('<button>ERB_OUTPUT</button>', 0),
    ('<button title="Close"></button>', 0),
    ('<button aria-label="Close"><i></i></button>', 0),
    ('<a name="anchor"></a>', 0),
    ('<div role="button"></div>', 1),
])
def test_accessible_names(run, markup, expected):
    assert len(run(interactive_elements, markup)) == expected


def test_accessible_name_messages(run):
    link, button = run(interactive_elements, '<a href="/x"></a><button></button>')
    assert link.message == "A missing accessible name"
    assert link.wcag == "2.4.4"
    assert button.message == "Button missing accessible name"
    assert button.wcag == "4.1.2"


def test_heading_inside_button(run):
    """Test dat een heading in een button gemeld wordt."""
    findings = run(interactive_elements, "<button><h2>Titel</h2></button>")
    assert len(findings) == 1
    assert findings[0].message.startswith("Button contains H2 heading")
    assert findings[0].element.details["nested_heading"] == "h2"


# --- Headings ---

def test_headings_missing_h1_not_double_reported(run):
    """Test dat een pagina die met h2 begint alleen 'geen h1' krijgt, geen 'overgeslagen'."""
    findings = run(heading, "<h2>A</h2><h3>B</h3>")
    assert [f.message for f in findings] == ["Page has h2 but no h1 heading"]


def test_headings_skipped_level(run):
    findings = run(heading, "<h1>A</h1><h3>B</h3>")
    assert [f.message for f in findings] == ["Heading hierarchy skipped (h1 to h3)"]
    assert findings[0].element.tag == "h3"


def test_headings_multiple_h1(run):
    findings = run(heading, "<h1>A</h1><h1>B</h1><h1>C</h1>")
    assert len(findings) == 2
    assert all(f.message.startswith("Page has multiple h1 headings (3 total)") for f in findings)
    assert [f.element.text for f in findings] == ["B", "C"]


def test_headings_none(run):
    assert run(heading, "<p>Geen koppen</p>") == []


def test_headings_empty(run):
    findings = run(heading, "<h1>A</h1><h2> </h2>")
    assert [f.message for f in findings] == ["Empty heading detected (<h2>) - headings must have accessible text"]
    assert findings[0].wcag == "4.1.2"


def test_headings_image_with_alt_is_content(run):
    assert run(heading, '<h1><img src="logo.png" alt="Acme"></h1>') == []


def test_headings_styling_only_is_warning(run):
    findings = run(heading, "<h1>A</h1><h2>•</h2>")
    assert len(findings) == 1
    assert findings[0].severity == Severity.WARNING
    assert findings[0].wcag == "2.4.6"


# --- Duplicate ids ---

def test_duplicate_ids_reports_later_occurrence(run):
    findings = run(duplicate_ids, '<div id="x"></div><span id="x"></span>')
    assert len(findings) == 1
    assert findings[0].message == "Duplicate ID 'x' found"
    assert findings[0].element.tag == "span"
    assert findings[0].element.details["occurrence"] == 1


def test_duplicate_ids_placeholder_non_collision(run):
    """Test dat ids opgebouwd uit verschillende runtime-waarden nooit als duplicaat gelden."""
    markup = '<li id="item_ERB_OUTPUT_ERB_OUTPUT"></li><li id="item_ERB_OUTPUT_ERB_OUTPUT"></li>'
    assert run(duplicate_ids, markup) == []


def test_duplicate_ids_three_times(run):
    findings = run(duplicate_ids, '<p id="a"></p><p id="a"></p><p id="a"></p>')
    assert len(findings) == 2
    assert {f.element.details["occurrences"] for f in findings} == {3}


# --- Landmarks and skip links ---

def test_main_landmark(run):
    findings = run(aria_landmarks, "<div>Inhoud</div>")
    assert len(findings) == 1
    assert findings[0].message == "Page missing MAIN landmark"
    assert findings[0].severity == Severity.WARNING

    assert run(aria_landmarks, "<main></main>") == []
    assert run(aria_landmarks, '<div role="main"></div>') == []


def test_skip_links(run):
    findings = run(skip_links, "<nav></nav><main></main>")
    assert len(findings) == 1
    assert findings[0].severity == Severity.WARNING

    assert run(skip_links, '<a href="#main">Skip</a><nav></nav>') == []
    assert run(skip_links, '<a class="skip-link" href="#top">Skip</a><header></header>') == []
    assert run(skip_links, "<main></main>") == []


# --- Dialogs ---

@pytest.mark.parametrize("markup, expected", [
    ('<div role="dialog"><p>Hallo</p></div>', 1),
    ('<div role="dialog"><button>Sluiten</button></div>', 0),
    ('<div role="alertdialog"><div tabindex="0">Ok</div></div>', 0),
    ('<div role="dialog"><div tabindex="-1">Ok</div></div>', 1),
])
def test_dialog_focus(run, markup, expected):
    findings = run(keyboard_accessibility, markup)
    assert len(findings) == expected
    for f in findings:
        assert f.message == "Modal dialog has no focusable elements"


# --- Form errors ---

@pytest.mark.parametrize("markup, expected", [
    ('<div class="field_with_errors"><input id="name" type="text"></div>', 1),
    ('<div class="field_with_errors"><input id="name" type="text" aria-describedby="name_error"></div>', 0),
    ('<label for="n">N</label><span class="error">Fout</span><input id="n" aria-invalid="true">', 0),
    ('<input class="is-invalid">', 0),
    ('<input id="n" class="is-invalid">', 1),
])
def test_form_errors(run, markup, expected):
    findings = run(form_errors, markup)
    assert len(findings) == expected
    for f in findings:
        assert f.message == "Form input error message not associated"
        assert f.wcag == "3.3.1"


# --- Tables ---

@pytest.mark.parametrize("markup, expected", [
    ("<table><tr><td>1</td></tr></table>", 1),
    ("<table><tr><th>Kop</th></tr><tr><td>1</td></tr></table>", 0),
    ('<table role="presentation"><tr><td>1</td></tr></table>', 0),
])
def test_table_headers(run, markup, expected):
    assert len(run(table_structure, markup)) == expected


# --- Contrast ---

def test_color_contrast_is_a_disabled_stub(run):
    assert color_contrast.DEFINITION.default_enabled is False
    assert run(color_contrast, '<p style="color:#eee;background:#fff">Licht</p>') == []


def test_definitions_declare_wcag_references():
    """Test dat de WCAG-referenties via check_spec worden opgepikt."""
    assert interactive_elements.DEFINITION.wcag == ["2.4.4", "4.1.2"]
    assert heading.DEFINITION.page_scope is True
    assert form_labels.DEFINITION.page_scope is False


# --- Ids with control characters ---

def test_form_labels_multiline_id_does_not_hide_other_fields(run):
    """Test dat een id met een regeleinde de rest van de velden niet verbergt."""
    findings = run(form_labels, '<input type="text" id="a\nb">\n<input type="text" id="plain">')
    assert [f.element.id for f in findings] == ["a\nb", "plain"]


def test_form_labels_multiline_id_matches_its_label(run):
    assert run(form_labels, '<label for="a\nb">Naam</label><input type="text" id="a\nb">') == []


def test_form_errors_multiline_id(run):
    findings = run(form_errors, '<div class="field_with_errors"><input id="a\nb" type="text"></div>')
    assert len(findings) == 1


def test_css_string_escapes_control_characters():
    assert css_string('a\nb') == '"a\\a b"'
    assert css_string('say "hi"') == '"say \\"hi\\""'


@pytest.mark.parametrize("href", ["#maincontent", "#mainContent", "#main-content"])
def test_skip_link_variants(run, href):
    markup = f'<a href="{href}">Naar inhoud</a><nav></nav><main id="maincontent"></main>'
    assert run(skip_links, markup) == []
