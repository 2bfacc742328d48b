"""Tests for the BeautifulSoup document binding."""

import os
import tempfile
import unittest

from fieldscraper.document import PlaywrightDocument, SoupDocument


class TestSoupDocument(unittest.IsolatedAsyncioTestCase):
    """Verify the snapshot binding behaves like a browser DOM."""

    async def test_query_within_element(self):
        """Scoped queries only see descendants of the given element."""
        doc = SoupDocument("<div id='a'><p>1</p></div><div id='b'><p>2</p></div>")
        (container,) = await doc.query("#b")
        cells = await doc.query("p", within=container)
        self.assertEqual([await doc.read_text(c) for c in cells], ["2"])

    async def test_next_sibling_skips_text(self):
        """Whitespace between elements is not a sibling."""
        doc = SoupDocument("<div><label>A</label>\n   <span>B</span></div>")
        (label,) = await doc.query("label")
        sibling = await doc.next_sibling(label)
        self.assertEqual(await doc.tag_name(sibling), "SPAN")

    async def test_select_without_selection_uses_first_option(self):
        """A select reports its first option when none is selected."""
        doc = SoupDocument("<select><option>Petrol</option><option>Diesel</option></select>")
        (select,) = await doc.query("select")
        self.assertEqual(await doc.read_value(select), "Petrol")

    async def test_input_without_value_is_empty(self):
        """An input without a value attribute reads as an empty string."""
        doc = SoupDocument("<input name='x'>")
        (control,) = await doc.query("input")
        self.assertEqual(await doc.read_value(control), "")

    async def test_unclosed_cells_become_siblings(self):
        """An unclosed td ends at the next td, as in a browser."""
        doc = SoupDocument("<table><tr><td>Plate<td>ABC-1234</table>")
        first, second = await doc.query("td")
        self.assertEqual(await doc.read_text(first), "Plate")
        self.assertIs(await doc.next_sibling(first), second)

    async def test_from_file(self):
        """Saved pages can be loaded from disk."""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "page.html")
            with open(path, "w", encoding="utf-8") as f:
                f.write("<dl><dt>K</dt><dd>V</dd></dl>")
            doc = SoupDocument.from_file(path)
        self.assertEqual(len(await doc.query("dt")), 1)


class FakeHandle:
    def __init__(self, tag, text=None, value="", sibling=None):
        self.last_handle = None
        self.tag = tag
        self.text = text
        self.value = value
        self.sibling = sibling
        self.children = []

    async def text_content(self):
        return self.text

    async def input_value(self):
        return self.value

    async def evaluate(self, expression):
        return self.tag.lower()

    async def evaluate_handle(self, expression):
        self.last_handle = FakeJSHandle(self.sibling)
        return self.last_handle

    async def query_selector_all(self, selector):
        return list(self.children)


class FakeJSHandle:
    def __init__(self, element):
        self._element = element
        self.disposed = False

    def as_element(self):
        return self._element

    async def dispose(self):
        self.disposed = True


class FakeLivePage:
    def __init__(self, elements):
        self.elements = elements
        self.selectors = []

    async def query_selector_all(self, selector):
        self.selectors.append(selector)
        return list(self.elements)


class TestPlaywrightDocument(unittest.IsolatedAsyncioTestCase):
    """Verify the live binding maps onto element handle calls."""

    async def test_reads_through_handles(self):
        """Text, values, tag names and siblings come from the handles."""
        control = FakeHandle("INPUT", value="ABC-1234")
        label = FakeHandle("label", text="Plate", sibling=control)
        page = FakeLivePage([label])
        doc = PlaywrightDocument(page)

        (found,) = await doc.query("label")
        self.assertEqual(page.selectors, ["label"])
        self.assertEqual(await doc.read_text(found), "Plate")
        self.assertEqual(await doc.tag_name(found), "LABEL")
        sibling = await doc.next_sibling(found)
        self.assertIs(sibling, control)
        self.assertFalse(label.last_handle.disposed)
        self.assertEqual(await doc.read_value(sibling), "ABC-1234")

    async def test_missing_text_and_sibling(self):
        """A null textContent reads as empty and a last child has no sibling."""
        element = FakeHandle("DIV", text=None)
        child = FakeHandle("P", text="x")
        element.children.append(child)
        doc = PlaywrightDocument(FakeLivePage([element]))

        self.assertEqual(await doc.read_text(element), "")
        self.assertIsNone(await doc.next_sibling(element))
        self.assertTrue(element.last_handle.disposed)
        self.assertEqual(await doc.query("p", within=element), [child])


if __name__ == "__main__":
    unittest.main()
