"""
Built-in Markdown to Word renderer for md2word-mcp.

Markdown is rendered to HTML with markdown-it-py, parsed into a DOM with
BeautifulSoup, and walked element by element into a python-docx Document.
This is the fallback used when pandoc is not installed.

Supported elements:
- Headings h1-h6 (bold, decreasing font size)
- Bold / italic spans (nestable) and inline code (monospace, highlighted)
- Ordered and unordered lists, nested up to three levels
- Code blocks (monospace, one paragraph per source line, no re-wrapping)
- Paragraphs, hard line breaks and horizontal rules

Anything else is rendered as its plain text content.
"""

from pathlib import Path
from typing import NamedTuple, Union

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from docx import Document
from docx.document import Document as DocumentObject
from docx.enum.text import WD_COLOR_INDEX
from docx.oxml.ns import qn
from docx.oxml.shared import OxmlElement
from docx.shared import Pt, RGBColor
from docx.text.paragraph import Paragraph
from markdown_it import MarkdownIt

PLACEHOLDER_TEXT = "Document content"

# Heading font sizes in points, h1 .. h6
HEADING_SIZES = {level: 24 - (level - 1) * 2 for level in range(1, 7)}

CODE_FONT = "Courier New"
CODE_SIZE = Pt(9)
CODE_COLOR = RGBColor(0x00, 0x00, 0x80)

MAX_LIST_DEPTH = 3


class RunStyle(NamedTuple):
    bold: bool = False
    italic: bool = False
    code: bool = False


class DocxRenderer:
    """Walks the HTML rendering of a Markdown document into python-docx calls.

    Usage:
        renderer = DocxRenderer()
        doc = renderer.render("# Title\\n\\n**Bold** text.")
        doc.save("out.docx")
    """

    def __init__(self):
        # Raw HTML in the Markdown source is escaped, not interpreted
        self._markdown = MarkdownIt("commonmark", {"html": False})

    def to_html(self, markdown_text: str) -> str:
        return self._markdown.render(markdown_text)

    def render(self, markdown_text: str) -> DocumentObject:
        """
        Render Markdown text into a new python-docx Document.

        Args:
            markdown_text: Markdown source

        Returns:
            Document with at least one paragraph (a placeholder when the
            source renders to nothing)
        """
        soup = BeautifulSoup(self.to_html(markdown_text), "html.parser")
        doc = Document()

        block_count = 0
        for node in soup.children:
            block_count += self._render_block(doc, node)

        if block_count == 0:
            doc.add_paragraph(PLACEHOLDER_TEXT)

        return doc

    def render_to_file(self, markdown_text: str, output_path: Union[str, Path]) -> None:
        self.render(markdown_text).save(str(output_path))

    # Block level

    def _render_block(self, doc: DocumentObject, node) -> int:
        """Render one top-level node. Returns the number of blocks emitted."""
        if isinstance(node, Comment):
            return 0

        if isinstance(node, NavigableString):
            text = str(node).strip()
            if not text:
                return 0
            doc.add_paragraph(text)
            return 1

        if not isinstance(node, Tag):
            return 0

        name = node.name.lower()

        if name in ("h1", "h2", "h3", "h4", "h5", "h6"):
            self._render_heading(doc, node, int(name[1]))
            return 1

        if name == "p":
            paragraph = doc.add_paragraph()
            self._render_inline(paragraph, node, RunStyle())
            return 1

        if name == "pre":
            return self._render_code_block(doc, node)

        if name in ("ul", "ol"):
            return self._render_list(doc, node, ordered=(name == "ol"), depth=1)

        if name == "hr":
            self._render_horizontal_rule(doc)
            return 1

        # Unrecognized element: plain text content
        text = node.get_text().strip()
        if not text:
            return 0
        doc.add_paragraph(text)
        return 1

    def _render_heading(self, doc: DocumentObject, node: Tag, level: int) -> None:
        paragraph = doc.add_heading(level=level)
        run = paragraph.add_run(node.get_text().strip())
        run.bold = True
        run.font.size = Pt(HEADING_SIZES[level])

    def _render_code_block(self, doc: DocumentObject, node: Tag) -> int:
        code = node.get_text()
        if code.endswith("\n"):
            code = code[:-1]

        lines = code.split("\n")
        for line in lines:
            paragraph = doc.add_paragraph()
            paragraph.paragraph_format.space_before = Pt(0)
            paragraph.paragraph_format.space_after = Pt(0)
            run = paragraph.add_run(line)
            _apply_code_font(run, highlight=False)
        return len(lines)

    def _render_list(self, doc: DocumentObject, node: Tag, ordered: bool, depth: int) -> int:
        base_style = "List Number" if ordered else "List Bullet"
        style = base_style if depth == 1 else f"{base_style} {min(depth, MAX_LIST_DEPTH)}"

        count = 0
        for item in node.find_all("li", recursive=False):
            paragraph = doc.add_paragraph(style=style)
            count += 1
            nested = []
            for child in item.children:
                if isinstance(child, Tag) and child.name in ("ul", "ol"):
                    nested.append(child)
                elif isinstance(child, Tag) and child.name == "p":
                    if paragraph.text:
                        paragraph.add_run().add_break()
                    self._render_inline(paragraph, child, RunStyle())
                else:
                    self._render_inline_node(paragraph, child, RunStyle())

            for sublist in nested:
                count += self._render_list(
                    doc, sublist, ordered=(sublist.name == "ol"), depth=depth + 1
                )
        return count

    def _render_horizontal_rule(self, doc: DocumentObject) -> None:
        paragraph = doc.add_paragraph()
        p_pr = paragraph._p.get_or_add_pPr()
        border = OxmlElement("w:pBdr")
        bottom = OxmlElement("w:bottom")
        bottom.set(qn("w:val"), "single")
        bottom.set(qn("w:sz"), "4")
        bottom.set(qn("w:space"), "1")
        bottom.set(qn("w:color"), "auto")
        border.append(bottom)
        p_pr.append(border)

    # Inline level

    def _render_inline(self, paragraph: Paragraph, node: Tag, style: RunStyle) -> None:
        for child in node.children:
            self._render_inline_node(paragraph, child, style)

    def _render_inline_node(self, paragraph: Paragraph, node, style: RunStyle) -> None:
        if isinstance(node, Comment):
            return

        if isinstance(node, NavigableString):
            text = str(node).replace("\n", " ")
            if not text.strip() and not paragraph.text:
                return
            _add_run(paragraph, text, style)
            return

        if not isinstance(node, Tag):
            return

        name = node.name.lower()
        if name in ("strong", "b"):
            self._render_inline(paragraph, node, style._replace(bold=True))
        elif name in ("em", "i"):
            self._render_inline(paragraph, node, style._replace(italic=True))
        elif name == "code":
            _add_run(paragraph, node.get_text(), style._replace(code=True))
        elif name == "br":
            paragraph.add_run().add_break()
        elif name == "img":
            alt = node.get("alt") or ""
            if alt:
                _add_run(paragraph, alt, style)
        else:
            self._render_inline(paragraph, node, style)


def _add_run(paragraph: Paragraph, text: str, style: RunStyle) -> None:
    run = paragraph.add_run(text)
    if style.bold:
        run.bold = True
    if style.italic:
        run.italic = True
    if style.code:
        _apply_code_font(run, highlight=True)


def _apply_code_font(run, highlight: bool) -> None:
    run.font.name = CODE_FONT
    run.font.size = CODE_SIZE
    run.font.color.rgb = CODE_COLOR
    if highlight:
        run.font.highlight_color = WD_COLOR_INDEX.GRAY_25
