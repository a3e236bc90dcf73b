"""
Node helpers shared by every extraction stage.

Thin functions over BeautifulSoup trees: text measurement, link
density, element-only navigation and depth-first traversal that
tolerates nodes being removed while walking.
"""

import re
from typing import Callable

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import PageElement

# Tags that make a DIV more than a paragraph
DIV_TO_P_ELEMS = frozenset(
    {"blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"})

PHRASING_ELEMS = frozenset({
    "abbr", "audio", "b", "bdo", "br", "button", "cite", "code", "data",
    "datalist", "dfn", "em", "embed", "i", "img", "input", "kbd", "label",
    "mark", "math", "meter", "noscript", "object", "output", "progress", "q",
    "ruby", "samp", "script", "select", "small", "span", "strong", "sub",
    "sup", "textarea", "time", "var", "wbr",
})

PRESENTATIONAL_ATTRIBUTES = (
    "align", "background", "bgcolor", "border", "cellpadding", "cellspacing",
    "frame", "hspace", "rules", "style", "valign", "vspace",
)

DEPRECATED_SIZE_ATTRIBUTE_ELEMS = frozenset({"table", "th", "td", "hr", "pre"})

_HAS_CONTENT_RE = re.compile(r"\S$")
_HASH_URL_RE = re.compile(r"^#.+")
_WHITESPACE_RUN_RE = re.compile(r"\s+")
WHITESPACE_RE = re.compile(r"^\s*$")


def is_element(node: PageElement | None) -> bool:
    """True for real elements, False for text, comments and the document."""
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def is_text(node: PageElement | None) -> bool:
    """True for text nodes; comments, doctypes and CDATA do not count."""
    return type(node) is NavigableString


def text_content(node: PageElement) -> str:
    """Concatenated text of a node and its descendants."""
    if isinstance(node, NavigableString):
        return str(node) if is_text(node) else ""
    return node.get_text()


def inner_text(node: PageElement, normalize_spaces: bool = True) -> str:
    """
    Get the trimmed text of a node.

    Args:
        node: Node to measure
        normalize_spaces: Collapse every whitespace run to one space

    Returns:
        The text content
    """
    text = text_content(node).strip()
    if normalize_spaces:
        return _WHITESPACE_RUN_RE.sub(" ", text)
    return text


def get_class(tag: Tag) -> str:
    """Class attribute as a single space separated string."""
    value = tag.get("class")
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return " ".join(value)


def set_class(tag: Tag, class_name: str) -> None:
    names = class_name.split()
    if names:
        tag["class"] = names
    elif "class" in tag.attrs:
        del tag["class"]


def get_id(tag: Tag) -> str:
    value = tag.get("id")
    return value if isinstance(value, str) else ""


def match_string(tag: Tag) -> str:
    """The ``class id`` string matched against the pattern categories."""
    return f"{get_class(tag)} {get_id(tag)}"


def attribute_values(tag: Tag) -> list[str]:
    """Every attribute value as a string."""
    values = []
    for value in tag.attrs.values():
        values.append(" ".join(value) if isinstance(value, list) else str(value))
    return values


def parent_element(node: PageElement) -> Tag | None:
    """Parent element, or None at the document root."""
    parent = node.parent
    return parent if is_element(parent) else None


def element_children(tag: Tag) -> list[Tag]:
    return [child for child in tag.children if isinstance(child, Tag)]


def first_element_child(tag: Tag) -> Tag | None:
    for child in tag.children:
        if isinstance(child, Tag):
            return child
    return None


def next_element_sibling(node: PageElement) -> Tag | None:
    sibling = node.next_sibling
    while sibling is not None and not isinstance(sibling, Tag):
        sibling = sibling.next_sibling
    return sibling


def previous_element_sibling(node: PageElement) -> Tag | None:
    sibling = node.previous_sibling
    while sibling is not None and not isinstance(sibling, Tag):
        sibling = sibling.previous_sibling
    return sibling


def get_next_node(node: Tag | None, ignore_self_and_kids: bool = False) -> Tag | None:
    """
    Step a depth-first walk over elements.

    Pass ``ignore_self_and_kids=True`` when the node (and its children)
    are about to go away and the walk should continue past them.
    """
    if node is None:
        return None

    if not ignore_self_and_kids:
        child = first_element_child(node)
        if child is not None:
            return child

    sibling = next_element_sibling(node)
    if sibling is not None:
        return sibling

    # Move up the parent chain and find a sibling; parents were already seen
    current = parent_element(node)
    while current is not None:
        sibling = next_element_sibling(current)
        if sibling is not None:
            return sibling
        current = parent_element(current)
    return None


def remove_and_get_next(node: Tag) -> Tag | None:
    next_node = get_next_node(node, ignore_self_and_kids=True)
    node.extract()
    return next_node


def remove_nodes(nodes: list[Tag], filter_fn: Callable[[Tag], bool] | None = None) -> None:
    """
    Remove nodes, walking backwards so removals do not disturb the walk.

    Nodes already detached from the tree are skipped.
    """
    for node in reversed(nodes):
        if node.parent is None:
            continue
        if filter_fn is None or filter_fn(node):
            node.extract()


def set_node_tag(tag: Tag, name: str) -> Tag:
    """
    Retag an element in place, keeping its children and attributes.

    Retagging in place keeps the element's identity, so any score
    recorded for it survives.
    """
    tag.name = name.lower()
    return tag


def get_ancestors(node: PageElement, max_depth: int = 0) -> list[Tag]:
    """Element ancestors, closest first, up to ``max_depth`` (0 = all)."""
    ancestors = []
    parent = parent_element(node)
    while parent is not None:
        ancestors.append(parent)
        if max_depth and len(ancestors) == max_depth:
            break
        parent = parent_element(parent)
    return ancestors


def has_ancestor_tag(
    node: Tag,
    tag_name: str,
    max_depth: int = 3,
    filter_fn: Callable[[Tag], bool] | None = None,
) -> bool:
    """
    Check whether an ancestor within ``max_depth`` levels has the tag.

    A negative ``max_depth`` searches all the way up.
    """
    tag_name = tag_name.lower()
    depth = 0
    parent = parent_element(node)
    while parent is not None:
        if max_depth > 0 and depth > max_depth:
            return False
        if parent.name == tag_name and (filter_fn is None or filter_fn(parent)):
            return True
        parent = parent_element(parent)
        depth += 1
    return False


def is_single_image(tag: Tag | None) -> bool:
    """True if the element is an image or wraps exactly one, with no text."""
    while tag is not None:
        if tag.name == "img":
            return True
        children = element_children(tag)
        if len(children) != 1 or inner_text(tag, normalize_spaces=False):
            return False
        tag = children[0]
    return False


def has_single_tag_inside_element(tag: Tag, tag_name: str) -> bool:
    """
    True if the element has exactly one child element with the tag and
    no text children with real content.
    """
    children = element_children(tag)
    if len(children) != 1 or children[0].name != tag_name:
        return False

    for child in tag.children:
        if is_text(child) and _HAS_CONTENT_RE.search(str(child)):
            return False
    return True


def is_element_without_content(tag: Tag) -> bool:
    if text_content(tag).strip():
        return False
    children = element_children(tag)
    if not children:
        return True
    return len(children) == len(tag.find_all("br")) + len(tag.find_all("hr"))


def has_child_block_element(tag: Tag) -> bool:
    for child in tag.children:
        if isinstance(child, Tag) and (
            child.name in DIV_TO_P_ELEMS or has_child_block_element(child)
        ):
            return True
    return False


def is_phrasing_content(node: PageElement) -> bool:
    """Phrasing content: text, inline elements, and links whose children are all phrasing."""
    if isinstance(node, NavigableString):
        return is_text(node)
    if node.name in PHRASING_ELEMS:
        return True
    return node.name in ("a", "del", "ins") and all(
        is_phrasing_content(child) for child in node.children)


def is_whitespace(node: PageElement) -> bool:
    if isinstance(node, NavigableString):
        return is_text(node) and not str(node).strip()
    return isinstance(node, Tag) and node.name == "br"


def next_element(node: PageElement | None) -> Tag | None:
    """
    Find the first element starting at ``node`` and skipping whitespace
    text. Returns None when real text comes first.
    """
    current = node
    while current is not None and not isinstance(current, Tag):
        if isinstance(current, NavigableString) and is_text(current) \
                and not WHITESPACE_RE.match(str(current)):
            return None
        current = current.next_sibling
    return current


def char_count(tag: Tag, char: str = ",") -> int:
    return inner_text(tag).count(char)


def link_density(tag: Tag) -> float:
    """
    Share of the element's text that sits inside links.

    Hash links (``#section``) only count for 30% of their length.
    """
    text_length = len(inner_text(tag))
    if text_length == 0:
        return 0.0

    link_length = 0.0
    for link in tag.find_all("a"):
        href = link.get("href")
        coefficient = 0.3 if isinstance(href, str) and _HASH_URL_RE.match(href) else 1.0
        link_length += len(inner_text(link)) * coefficient

    return link_length / text_length


def _style_value(style: str, name: str) -> str | None:
    for declaration in style.split(";"):
        key, sep, value = declaration.partition(":")
        if sep and key.strip().lower() == name:
            return value.strip().lower()
    return None


def is_hidden(tag: Tag) -> bool:
    style = tag.get("style")
    if not isinstance(style, str):
        return False
    return _style_value(style, "display") == "none" or \
        _style_value(style, "visibility") in ("hidden", "collapse")


def is_probably_visible(tag: Tag) -> bool:
    if is_hidden(tag) or tag.has_attr("hidden"):
        return False
    aria_hidden = tag.get("aria-hidden")
    if aria_hidden == "true" and "fallback-image" not in get_class(tag):
        return False
    return True


def remove_comments(root: Tag) -> None:
    for comment in root.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()


def inner_html(tag: Tag) -> str:
    return tag.decode_contents()
