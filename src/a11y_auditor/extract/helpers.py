"""
Catalogue of view helpers the extractor can turn back into literal markup.

Each helper is a renderer registered under its method name. A renderer gets the
parsed call and returns the markup it stands for (plus the closing markup when
the helper is called with a block), or None when the call shape is not one it
understands; the extractor then falls back to a placeholder.
"""
import html
import re
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

PLACEHOLDER = "ERB_OUTPUT"

# (opening or complete markup, closing markup for block calls)
Rendered = Tuple[str, Optional[str]]


class Symbol(str):
    """A Ruby symbol literal (`:email`)."""


class Dynamic(str):
    """Any expression whose value is only known at render time."""


class HelperCall(NamedTuple):
    receiver: Optional[str]
    name: str
    args: List[Any]
    options: Dict[str, Any]
    block: bool


class HelperSpec(NamedTuple):
    render: Callable[[HelperCall], Optional[Rendered]]
    needs_receiver: bool
    tags: Tuple[str, ...]


HELPERS: Dict[str, HelperSpec] = {}


def register_helper(*names: str, tags: Tuple[str, ...], needs_receiver: bool = False):
    """Registers a renderer for one or more helper names."""
    def decorator(func):
        for name in names:
            HELPERS[name] = HelperSpec(func, needs_receiver, tags)
        return func
    return decorator


def helpers_for_tag(tag: str) -> List[str]:
    """Helper names known to render `tag`; used to locate helper-generated elements."""
    return sorted(name for name, spec in HELPERS.items() if tag in spec.tags)


# --- Argument parsing ---

_CALL_RE = re.compile(r"^(?:(?P<receiver>[a-z_]\w*)\.)?(?P<name>[a-z_]\w*[?!]?)(?P<rest>.*)$", re.S)
_BLOCK_RE = re.compile(r"\s+do\s*(?:\|[^|]*\|)?\s*$")
_INTERPOLATION_RE = re.compile(r"#\{[^}]*\}")
_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_DQ_STRING_RE = re.compile(r'^"((?:[^"\\]|\\.)*)"$', re.S)
_SQ_STRING_RE = re.compile(r"^'((?:[^'\\]|\\.)*)'$", re.S)

_KEYWORD_PATTERNS = (
    re.compile(r"^(?P<key>[A-Za-z_]\w*):(?!:)\s*(?P<value>.*)$", re.S),
    re.compile(r"^:(?P<key>[A-Za-z_]\w*)\s*=>\s*(?P<value>.*)$", re.S),
    re.compile(r"^[\"'](?P<key>[\w-]+)[\"']\s*(?:=>|:)\s*(?P<value>.*)$", re.S),
)

_PAIRS = {"(": ")", "[": "]", "{": "}"}


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Splits on `sep` outside of quotes and brackets."""
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    current: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            current.append(ch)
            if ch == "\\" and i + 1 < len(text):
                current.append(text[i + 1])
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
            current.append(ch)
        elif ch in _PAIRS:
            depth += 1
            current.append(ch)
        elif ch in _PAIRS.values():
            depth = max(depth - 1, 0)
            current.append(ch)
        elif ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1

    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return [p for p in parts if p]


def _matching_paren(text: str) -> int:
    """Index of the parenthesis closing text[0], or -1."""
    depth = 0
    quote: Optional[str] = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


def parse_value(text: str) -> Any:
    """Parses a Ruby literal; anything that is not a literal becomes Dynamic."""
    text = text.strip()
    m = _DQ_STRING_RE.match(text)
    if m:
        return _INTERPOLATION_RE.sub(PLACEHOLDER, _unescape(m.group(1)))
    m = _SQ_STRING_RE.match(text)
    if m:
        return _unescape(m.group(1))
    if re.match(r"^:[A-Za-z_]\w*[?!]?$", text):
        return Symbol(text[1:])
    if text.startswith("{") and text.endswith("}"):
        return parse_hash(text[1:-1])
    if _NUMBER_RE.match(text):
        return text
    if text in ("true", "false"):
        return text == "true"
    if text == "nil":
        return None
    return Dynamic(text)


def _keyword(piece: str) -> Optional[Tuple[str, str]]:
    for pattern in _KEYWORD_PATTERNS:
        m = pattern.match(piece)
        if m:
            return m.group("key"), m.group("value")
    return None


def parse_hash(body: str) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for piece in split_top_level(body):
        pair = _keyword(piece)
        if pair:
            result[pair[0]] = parse_value(pair[1])
    return result


def parse_call(code: str) -> Optional[HelperCall]:
    """
    Parses `name args`, `name(args)` or `receiver.name args`, with an
    optional trailing `do |...|` block opener.
    """
    code = code.strip()
    block = False
    m = _BLOCK_RE.search(code)
    if m:
        block = True
        code = code[:m.start()].rstrip()

    m = _CALL_RE.match(code)
    if not m:
        return None

    rest = m.group("rest")
    if rest.startswith("("):
        close = _matching_paren(rest)
        if close == -1:
            return None
        arg_text = rest[1:close]
    elif not rest.strip():
        arg_text = ""
    elif rest[0].isspace():
        arg_text = rest.strip()
    else:
        return None

    args: List[Any] = []
    options: Dict[str, Any] = {}
    for piece in split_top_level(arg_text):
        pair = _keyword(piece)
        if pair:
            options[pair[0]] = parse_value(pair[1])
            continue
        value = parse_value(piece)
        if isinstance(value, dict):
            options.update(value)
        else:
            args.append(value)

    return HelperCall(m.group("receiver"), m.group("name"), args, options, block)


# --- Markup building ---

_PASSTHROUGH_ATTRIBUTES = {
    "id", "class", "title", "alt", "name", "type", "role", "for", "tabindex",
    "value", "placeholder", "href", "src", "lang", "rel", "target", "style",
}


def attribute_text(value: Any) -> Optional[str]:
    """Renders a parsed value as an attribute value; None drops the attribute."""
    if value is None or value is False or isinstance(value, dict):
        return None
    if value is True:
        return ""
    if isinstance(value, Dynamic):
        return PLACEHOLDER
    return str(value)


def body_text(value: Any) -> str:
    if isinstance(value, Dynamic):
        return PLACEHOLDER
    if value is None or isinstance(value, (bool, dict)):
        return ""
    return html.escape(str(value), quote=False)


def option_attributes(options: Dict[str, Any]) -> Dict[str, str]:
    """Keeps the options that end up as accessibility-relevant HTML attributes."""
    attrs: Dict[str, str] = {}
    for key, value in options.items():
        if key in ("aria", "data") and isinstance(value, dict):
            for sub_key, sub_value in value.items():
                text = attribute_text(sub_value)
                if text is not None:
                    attrs[f"{key}-{sub_key.replace('_', '-')}"] = text
            continue
        if key in _PASSTHROUGH_ATTRIBUTES or key.startswith(("aria-", "data-")):
            text = attribute_text(value)
            if text is not None:
                attrs[key] = text
    return attrs


def render_attributes(attrs: Dict[str, str]) -> str:
    return "".join(f' {key}="{html.escape(value, quote=True)}"' for key, value in attrs.items())


def sanitize_to_id(name: str) -> str:
    """Mirrors how Rails derives a field id from its name: user[email] -> user_email."""
    return re.sub(r"[^-a-zA-Z0-9:.]", "_", name.replace("]", ""))


def humanize(name: str) -> str:
    text = re.sub(r"_id$", "", name).replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def _arg(call: HelperCall, index: int) -> Any:
    return call.args[index] if len(call.args) > index else None


def _element(tag: str, attrs: Dict[str, str], content: str = "", call: Optional[HelperCall] = None) -> Rendered:
    opening = f"<{tag}{render_attributes(attrs)}>"
    if call is not None and call.block:
        return opening, f"</{tag}>"
    return f"{opening}{content}</{tag}>", None


# --- Form fields ---

def _field_name(call: HelperCall) -> Optional[str]:
    name = _arg(call, 0)
    if name is None:
        return None
    return attribute_text(name)


def _input_renderer(input_type: str):
    def render(call: HelperCall) -> Optional[Rendered]:
        name = _field_name(call)
        if name is None:
            return None
        attrs = {"type": input_type, "name": name, "id": sanitize_to_id(name)}
        attrs.update(option_attributes(call.options))
        return f"<input{render_attributes(attrs)}>", None
    return render


for _helper_name, _input_type in (
        ("text_field_tag", "text"),
        ("password_field_tag", "password"),
        ("email_field_tag", "email"),
        ("number_field_tag", "number"),
        ("search_field_tag", "search"),
        ("telephone_field_tag", "tel"),
        ("phone_field_tag", "tel"),
        ("url_field_tag", "url"),
        ("date_field_tag", "date"),
):
    register_helper(_helper_name, tags=("input",))(_input_renderer(_input_type))


@register_helper("text_area_tag", tags=("textarea",))
def render_text_area(call: HelperCall) -> Optional[Rendered]:
    name = _field_name(call)
    if name is None:
        return None
    attrs = {"name": name, "id": sanitize_to_id(name)}
    attrs.update(option_attributes(call.options))
    return f"<textarea{render_attributes(attrs)}></textarea>", None


@register_helper("select_tag", tags=("select",))
def render_select(call: HelperCall) -> Optional[Rendered]:
    name = _field_name(call)
    if name is None:
        return None
    attrs = {"name": name, "id": sanitize_to_id(name)}
    attrs.update(option_attributes(call.options))
    return f"<select{render_attributes(attrs)}></select>", None


@register_helper("label_tag", tags=("label",))
def render_label(call: HelperCall) -> Optional[Rendered]:
    name = _field_name(call)
    if name is None:
        return None
    attrs = {"for": sanitize_to_id(name)}
    attrs.update(option_attributes(call.options))
    content = _arg(call, 1)
    if content is None:
        content_text = PLACEHOLDER if isinstance(_arg(call, 0), Dynamic) else html.escape(humanize(name))
    else:
        content_text = body_text(content)
    return _element("label", attrs, content_text, call)


@register_helper("submit", tags=("input",), needs_receiver=True)
def render_builder_submit(call: HelperCall) -> Optional[Rendered]:
    attrs = {"type": "submit"}
    value = _arg(call, 0)
    if value is not None:
        attrs["value"] = attribute_text(value) or ""
    attrs.update(option_attributes(call.options))
    return f"<input{render_attributes(attrs)}>", None


@register_helper("submit_tag", tags=("input",))
def render_submit_tag(call: HelperCall) -> Optional[Rendered]:
    value = _arg(call, 0)
    attrs = {"type": "submit", "value": "Save changes" if value is None else (attribute_text(value) or "")}
    attrs.update(option_attributes(call.options))
    return f"<input{render_attributes(attrs)}>", None


# --- Images, links, buttons ---

@register_helper("image_tag", tags=("img",))
def render_image(call: HelperCall) -> Optional[Rendered]:
    source = _arg(call, 0)
    if source is None:
        return None
    attrs = {"src": attribute_text(source) or ""}
    attrs.update(option_attributes(call.options))
    return f"<img{render_attributes(attrs)}>", None


def _href(value: Any) -> str:
    if isinstance(value, str) and not isinstance(value, (Dynamic, Symbol)):
        return value
    return "#"


@register_helper("link_to", tags=("a",))
def render_link(call: HelperCall) -> Optional[Rendered]:
    if call.block:
        attrs = {"href": _href(_arg(call, 0))}
        attrs.update(option_attributes(call.options))
        return _element("a", attrs, call=call)

    if not call.args:
        return None
    name, url = _arg(call, 0), _arg(call, 1)
    if len(call.args) == 1:
        url = name
    attrs = {"href": _href(url)}
    attrs.update(option_attributes(call.options))
    content = name if name is not None else url
    return _element("a", attrs, body_text(content))


@register_helper("button_tag", tags=("button",))
def render_button_tag(call: HelperCall) -> Optional[Rendered]:
    attrs = option_attributes(call.options)
    if call.block:
        return _element("button", attrs, call=call)
    content = _arg(call, 0)
    return _element("button", attrs, "Button" if content is None else body_text(content))


@register_helper("button", tags=("button",))
def render_button(call: HelperCall) -> Optional[Rendered]:
    content = _arg(call, 0)
    if content is None and not call.block:
        return None
    return _element("button", option_attributes(call.options), body_text(content), call)


@register_helper("content_tag", tags=())
def render_content_tag(call: HelperCall) -> Optional[Rendered]:
    tag = _arg(call, 0)
    if not isinstance(tag, str) or isinstance(tag, Dynamic) or not re.match(r"^[a-z][a-z0-9]*$", tag):
        return None
    return _element(tag, option_attributes(call.options), body_text(_arg(call, 1)), call)


@register_helper("form_with", "form_for", "form_tag", tags=("form",))
def render_form(call: HelperCall) -> Optional[Rendered]:
    if not call.block:
        return None
    return _element("form", option_attributes(call.options), call=call)


def render_helper(code: str) -> Optional[Tuple[Rendered, bool]]:
    """
    Renders a print fragment if it is a catalogued helper call.

    Returns ((markup, closing), is_block) or None.
    """
    call = parse_call(code)
    if call is None:
        return None
    spec = HELPERS.get(call.name)
    if spec is None or spec.needs_receiver != (call.receiver is not None):
        return None
    rendered = spec.render(call)
    if rendered is None:
        return None
    return rendered, call.block


def is_block_opener(code: str) -> bool:
    return bool(_BLOCK_RE.search(code))
