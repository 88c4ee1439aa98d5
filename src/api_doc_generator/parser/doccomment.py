"""Documentation-comment transformer.

Converts a raw structured doc comment (``/// <summary>...`` style markup)
into render-ready Markdown text. Parameter, type-parameter and return
tags are detached from the body and stored on the matching descriptors.

The stages run in a fixed order; each one works on the output of the
previous stages:

1. ``see``/``seealso`` references -> emphasized identifiers
2. ``c`` -> inline code, ``code`` -> fenced code block
3. ``value``/``paramref``/``typeparamref`` -> emphasized text
4. ``nodoc`` blocks removed, ``param`` tags moved to parameters
5. ``typeparam`` tags moved to type parameters
6. ``returns`` moved to the return value
7. ``para``/``summary``/``remarks`` -> plain paragraphs
8. ``example`` tags -> trailing "Example(s)" section
9. ``exception`` tags -> trailing "Exception(s)" section
10. whitespace normalization
"""

import re
from xml.dom import Node, minidom
from xml.parsers.expat import ExpatError

from api_doc_generator.errors import DocumentationError
from api_doc_generator.parser.base import (
    ParameterDescriptor,
    ReturnValueDescriptor,
    TypeParameterDescriptor,
)

CR = "\n"

# Documentation-id prefixes of cref values: T:Type, M:Method, P:Property...
_CREF_PREFIX = re.compile(r"^[TMPFEN]:")
_PLACEHOLDER = re.compile("\x00(\\d+)\x00")


def strip_comment_markers(raw: str) -> str:
    """Remove the ``///`` markers, keeping the indentation after them."""
    lines = []
    for line in raw.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith("///"):
            line = line[3:]
            if line.startswith(" "):
                line = line[1:]
        lines.append(line)
    return CR.join(lines)


def normalize_whitespace(text: str) -> str:
    """Unify line ends, collapse blank-line runs to one and trim."""
    lines = text.replace("\r\n", "\n").replace("\r", "\n").strip().split("\n")
    result = []
    empty_lines = 0
    for line in lines:
        line = line.rstrip()
        if not line:
            empty_lines += 1
            if empty_lines > 1:
                continue
        else:
            empty_lines = 0
        result.append(line)
    return CR.join(result)


def format_cref(cref: str) -> str:
    return _CREF_PREFIX.sub("", cref)


def transform_documentation(
    raw: str | None,
    parameters: list[ParameterDescriptor] | None = None,
    type_parameters: list[TypeParameterDescriptor] | None = None,
    return_value: ReturnValueDescriptor | None = None,
) -> str:
    """Transform a raw doc comment and attach the detached fragments.

    Returns the body text; an empty or absent comment yields "".
    Raises DocumentationError when the markup is not well-formed.
    """
    if not raw or not raw.strip():
        return ""
    body = strip_comment_markers(raw)
    if not body.strip():
        return ""
    return _DocTransform(body).run(parameters or [], type_parameters or [], return_value)


class _DocTransform:
    """One transformation run over a parsed comment."""

    def __init__(self, body: str):
        try:
            self.xml = minidom.parseString(f"<doc>{body}</doc>")
        except ExpatError as e:
            raise DocumentationError(f"Malformed documentation comment: {e}") from e
        self.root = self.xml.documentElement
        # Code fragments are kept out of the tree so that serialization
        # never escapes them.
        self.verbatim: list[str] = []

    def run(self, parameters, type_parameters, return_value) -> str:
        self._links()
        self._code()
        self._inline_values()
        self._suppressed_blocks()
        self._parameters(parameters)
        self._type_parameters(type_parameters)
        self._returns(return_value)
        self._paragraphs()
        self._examples()
        self._exceptions()
        return self._finish(self._inner_xml(self.root))

    # -- tree helpers ---------------------------------------------------------

    def _descendants(self, tag: str) -> list:
        return list(self.root.getElementsByTagName(tag))

    def _children(self, tag: str) -> list:
        return [n for n in self.root.childNodes if n.nodeType == Node.ELEMENT_NODE and n.tagName == tag]

    def _replace(self, element, text: str) -> None:
        if element.parentNode is None:  # already gone with an enclosing element
            return
        element.parentNode.replaceChild(self.xml.createTextNode(text), element)

    def _remove(self, element) -> None:
        element.parentNode.removeChild(element)

    def _keep_verbatim(self, text: str) -> str:
        self.verbatim.append(text)
        return f"\x00{len(self.verbatim) - 1}\x00"

    def _inner_text(self, node) -> str:
        if node.nodeType in (Node.TEXT_NODE, Node.CDATA_SECTION_NODE):
            return node.data
        return "".join(self._inner_text(child) for child in node.childNodes)

    def _inner_xml(self, node) -> str:
        return "".join(self._serialize(child) for child in node.childNodes)

    def _serialize(self, node) -> str:
        if node.nodeType == Node.TEXT_NODE:
            return node.data.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        if node.nodeType == Node.CDATA_SECTION_NODE:
            return node.data
        if node.nodeType != Node.ELEMENT_NODE:
            return ""
        attrs = "".join(f' {name}="{value}"' for name, value in node.attributes.items())
        inner = self._inner_xml(node)
        if not inner:
            return f"<{node.tagName}{attrs}/>"
        return f"<{node.tagName}{attrs}>{inner}</{node.tagName}>"

    def _finish(self, text: str) -> str:
        text = _PLACEHOLDER.sub(lambda m: self.verbatim[int(m.group(1))], text)
        return normalize_whitespace(text)

    # -- stages ---------------------------------------------------------------

    def _links(self) -> None:
        for element in self._descendants("seealso") + self._descendants("see"):
            cref = element.getAttribute("cref")
            if cref:
                self._replace(element, f"_{format_cref(cref)}_")
            elif element.getAttribute("langword"):
                self._replace(element, self._keep_verbatim(f"`{element.getAttribute('langword')}`"))

    def _code(self) -> None:
        for element in self._descendants("c"):
            self._replace(element, self._keep_verbatim(f"`{self._inner_text(element)}`"))

        for element in self._descendants("code"):
            lines = [line.rstrip(" \t") for line in self._inner_text(element).splitlines()]
            while lines and not lines[0].strip():
                lines.pop(0)
            while lines and not lines[-1].strip():
                lines.pop()
            lang = element.getAttribute("lang")
            fence = f"``` {lang}" if lang else "```"
            block = f"{CR}{fence}{CR}{CR.join(lines)}{CR}```{CR}"
            self._replace(element, self._keep_verbatim(block))

    def _inline_values(self) -> None:
        for element in self._descendants("value"):
            if not element.hasChildNodes():
                continue
            parent = element.parentNode
            parent.insertBefore(self.xml.createTextNode("_"), element)
            for child in list(element.childNodes):
                parent.insertBefore(child, element)
            parent.insertBefore(self.xml.createTextNode("_"), element)
            parent.removeChild(element)

        for tag in ("paramref", "typeparamref"):
            for element in self._descendants(tag):
                name = element.getAttribute("name")
                if name:
                    self._replace(element, f"_{name}_")

    def _suppressed_blocks(self) -> None:
        for element in self._descendants("nodoc"):
            block = element
            while block.parentNode is not None and block.parentNode is not self.root:
                block = block.parentNode
            if block.parentNode is self.root:
                self._remove(block)

    def _fragment(self, element) -> str:
        return self._finish(self._inner_xml(element))

    def _parameters(self, parameters: list[ParameterDescriptor]) -> None:
        for element in self._children("param"):
            name = element.getAttribute("name")
            parameter = next((p for p in parameters if p.name == name), None)
            if parameter is not None:
                if element.hasAttribute("example"):
                    parameter.example = element.getAttribute("example")
                parameter.documentation = self._fragment(element)
            self._remove(element)

    def _type_parameters(self, type_parameters: list[TypeParameterDescriptor]) -> None:
        for element in self._children("typeparam"):
            name = element.getAttribute("name")
            type_parameter = next((t for t in type_parameters if t.name == name), None)
            if type_parameter is not None:
                type_parameter.documentation = self._fragment(element)
            self._remove(element)

    def _returns(self, return_value: ReturnValueDescriptor | None) -> None:
        for index, element in enumerate(self._children("returns")):
            if index == 0 and return_value is not None:
                return_value.documentation = self._fragment(element)
            self._remove(element)

    def _paragraphs(self) -> None:
        elements = self._descendants("para") + self._children("summary") + self._children("remarks")
        for element in elements:
            self._replace(element, f"{CR}{CR}{self._inner_text(element)}{CR}{CR}")

    def _examples(self) -> None:
        elements = self._children("example")
        if not elements:
            return
        parts = [f"{CR}{CR}### Example{'s' if len(elements) > 1 else ''}{CR}"]
        for element in elements:
            parts.append(f"{CR}{self._inner_text(element)}{CR}")
            self._remove(element)
        self.root.appendChild(self.xml.createTextNode("".join(parts)))

    def _exceptions(self) -> None:
        elements = self._children("exception")
        documented = [e for e in elements if e.getAttribute("cref")]
        for element in elements:
            self._remove(element)
        if not documented:
            return
        parts = [f"{CR}{CR}### Exception{'s' if len(documented) > 1 else ''}{CR}"]
        for element in documented:
            cref = format_cref(element.getAttribute("cref"))
            parts.append(f"- {cref}: {self._inner_text(element).strip()}{CR}")
        self.root.appendChild(self.xml.createTextNode("".join(parts)))
