import json
import logging

import pytest

from datamodels import IndexEntry, SymbolIndex
from index_utils import (
    build_anchor_map,
    collect_indexes_in_docs,
    index_to_json_data,
    load_index,
    render_navtree_script,
    save_index_to_json,
    save_index_to_navtree_script,
)
from indexer import default_indexers
from indexer.base import IndexFormatError
from indexer.javascript_indexer import NavtreeScriptIndexer
from indexer.json_indexer import JsonIndexer


@pytest.fixture(scope="module")
def indexers():
    return default_indexers()


class TestRenderNavtreeScript:
    def test_reproduces_generator_output(self, sample_index, sample_script_text):
        assert render_navtree_script(sample_index) == sample_script_text

    def test_layout(self):
        index = SymbolIndex(name="a00001", entries=[
            IndexEntry(name="t", anchor="a00001.html#a00002", children=[
                IndexEntry(name="f", anchor="a00001.html#a1"),
            ]),
            IndexEntry(name="Modules", anchor=None, children_ref="modules"),
            IndexEntry(name="empty", anchor="a00001.html#a2", children=[]),
        ])
        assert render_navtree_script(index) == (
            'var a00001 =\n'
            '[\n'
            '    [ "t", "a00001.html#a00002", [\n'
            '      [ "f", "a00001.html#a1", null ]\n'
            '    ] ],\n'
            '    [ "Modules", null, "modules" ],\n'
            '    [ "empty", "a00001.html#a2", [ ] ]\n'
            '];'
        )

    def test_escapes_quotes(self):
        index = SymbolIndex(name="x", entries=[IndexEntry(name='operator"', anchor="x.html#a")])
        reread = NavtreeScriptIndexer().read_index(render_navtree_script(index))
        assert reread.entries[0].name == 'operator"'


class TestJsonOutput:
    def test_omits_absent_children(self):
        data = index_to_json_data(SymbolIndex(name="p", entries=[IndexEntry(name="A", anchor="p.html#a")]))
        assert data == [{"name": "A", "anchor": "p.html#a"}]

    def test_wrapped(self):
        data = index_to_json_data(SymbolIndex(name="p", entries=[]), wrapped=True)
        assert data == {"name": "p", "entries": []}

    def test_save_creates_parent_directories(self, tmp_path, sample_index):
        output = tmp_path / "out" / "a00022.json"
        save_index_to_json(sample_index, output)

        data = json.loads(output.read_text(encoding="utf8"))
        assert data[0]["name"] == "sdma_config_t"
        assert "children" not in data[-1]

    def test_json_round_trip_preserves_structure(self, tmp_path, sample_index):
        output = tmp_path / "a00022.json"
        save_index_to_json(sample_index, output)

        reread = JsonIndexer().read_index(output.read_text(encoding="utf8"), name="a00022")
        assert reread == sample_index


class TestLoadIndex:
    def test_load_script_sets_source(self, sample_script_path, indexers):
        index = load_index(sample_script_path, indexers)

        assert index.name == "a00022"
        assert index.source == str(sample_script_path)

    def test_load_json_named_after_file(self, tmp_path, indexers):
        path = tmp_path / "a00030.json"
        path.write_text('[{"name": "A", "anchor": "a00030.html#a"}]', encoding="utf8")

        assert load_index(path, indexers).name == "a00030"

    def test_load_header(self, tmp_path, indexers):
        path = tmp_path / "fsl_sdma.h"
        path.write_text("void SDMA_Init(void);\n", encoding="utf8")
        index = load_index(path, indexers)

        assert index.name == "fsl_sdma"
        assert index.entries[0].anchor.startswith("fsl_sdma.html#ga")

    def test_unknown_suffix(self, tmp_path, indexers):
        path = tmp_path / "a00022.html"
        path.write_text("<html></html>", encoding="utf8")

        with pytest.raises(IndexFormatError):
            load_index(path, indexers)

    def test_script_round_trip_through_file(self, tmp_path, sample_index, indexers):
        output = tmp_path / "copy" / "a00022.js"
        save_index_to_navtree_script(sample_index, output)

        reread = load_index(output, indexers)
        assert reread.entries == sample_index.entries


class TestCollectIndexes:
    def test_collects_supported_files_and_skips_bad_ones(self, tmp_path, indexers, sample_script_text, caplog):
        (tmp_path / "html").mkdir()
        (tmp_path / "html" / "a00022.js").write_text(sample_script_text, encoding="utf8")
        (tmp_path / "html" / "broken.js").write_text("var x = [ [", encoding="utf8")
        (tmp_path / "html" / "a00022.html").write_text("<html></html>", encoding="utf8")
        (tmp_path / "a00030.json").write_text('[{"name": "A", "anchor": "a00030.html#a"}]', encoding="utf8")

        with caplog.at_level(logging.WARNING, logger="navtree_index"):
            indexes = collect_indexes_in_docs(tmp_path, indexers)

        assert sorted(index.name for index in indexes) == ["a00022", "a00030"]
        assert "broken.js" in caplog.text


class TestBuildAnchorMap:
    def test_merges_pages(self, sample_index):
        other = SymbolIndex(name="a00030", entries=[IndexEntry(name="GPIO_PinInit", anchor="a00030.html#ga1")])
        mapping = build_anchor_map([sample_index, other])

        assert mapping["a00030.html#ga1"] == "a00030:GPIO_PinInit"
        assert mapping["a00022.html#a00183"] == "a00022:sdma_config_t"
        assert len(mapping) == sample_index.count() + 1

    def test_first_page_wins_on_clash(self, caplog):
        first = SymbolIndex(name="a", entries=[IndexEntry(name="X", anchor="shared.html#x")])
        second = SymbolIndex(name="b", entries=[IndexEntry(name="Y", anchor="shared.html#x")])

        with caplog.at_level(logging.WARNING, logger="navtree_index"):
            mapping = build_anchor_map([first, second])

        assert mapping == {"shared.html#x": "a:X"}
        assert "b:Y" in caplog.text
