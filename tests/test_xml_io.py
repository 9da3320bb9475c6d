"""Unit tests for the XML boundary adapter."""

import pytest

from performkit.document import ID, Element, of_kind, query
from performkit.errors import DocumentError
from performkit.performance import select_performance
from performkit.xml_io import load_document, parse_document, to_xml_string, write_document

SAMPLE_MPM = """<?xml version="1.0" encoding="UTF-8"?>
<mpm xmlns="http://www.cemfi.de/mpm/ns/1.0">
  <performance name="default" pulsesPerQuarter="720">
    <global>
      <dated>
        <tempoMap>
          <tempo xml:id="t1" date="0.0" bpm="100" transition.to="140" beatLength="0.25"/>
        </tempoMap>
      </dated>
    </global>
  </performance>
</mpm>
"""


def test_parse_maps_names_and_attributes() -> None:
    root = parse_document(SAMPLE_MPM)
    assert root.kind == "mpm"
    entry = next(query(root, of_kind("tempo")))
    assert entry.identifier == "t1"
    assert entry.get("transition.to") == "140"
    assert entry.number("bpm") == 100.0


def test_parsed_document_has_a_performance() -> None:
    perf = select_performance(parse_document(SAMPLE_MPM))
    assert [e.identifier for e in perf.curve_entries("tempoMap")] == ["t1"]


def test_round_trip_keeps_namespace_and_ids() -> None:
    text = to_xml_string(parse_document(SAMPLE_MPM))
    assert 'xmlns="http://www.cemfi.de/mpm/ns/1.0"' in text
    assert 'xml:id="t1"' in text
    again = parse_document(text)
    assert next(query(again, of_kind("tempo"))).identifier == "t1"


def test_numbers_written_as_text() -> None:
    root = Element("msm", children=[Element("note", {ID: "n1", "date": 10, "milliseconds.date": 0.0})])
    text = to_xml_string(root)
    assert 'date="10"' in text
    assert 'milliseconds.date="0.0"' in text


def test_malformed_xml_raises_document_error() -> None:
    with pytest.raises(DocumentError):
        parse_document("<mpm><performance></mpm>")


def test_write_and_load(tmp_path) -> None:
    path = tmp_path / "out.mpm"
    write_document(parse_document(SAMPLE_MPM), path)
    assert path.read_bytes().startswith(b"<?xml")
    loaded = load_document(path)
    assert next(query(loaded, of_kind("tempo"))).get("bpm") == "100"


def test_load_malformed_file(tmp_path) -> None:
    path = tmp_path / "broken.msm"
    path.write_text("<msm>", encoding="utf-8")
    with pytest.raises(DocumentError, match="broken.msm"):
        load_document(path)


MPM_WITH_METADATA = """<?xml version="1.0" encoding="UTF-8"?>
<mpm xmlns="http://www.cemfi.de/mpm/ns/1.0" xmlns:ext="urn:example:ext">
  <metadata>
    <author number="0">Jane Doe</author>
    <comment><text>Take 3</text></comment>
    <!-- recorded live -->
    <?render engine="meico"?>
  </metadata>
  <performance name="default" ext:source="studio">
    <global><dated><tempoMap><tempo xml:id="t1" date="0.0" bpm="100"/></tempoMap></dated></global>
  </performance>
</mpm>
"""


def test_round_trip_keeps_metadata_text_and_comments() -> None:
    text = to_xml_string(parse_document(MPM_WITH_METADATA))
    assert ">Jane Doe</author>" in text
    assert "<text>Take 3</text>" in text
    assert "<!-- recorded live -->" in text
    assert '<?render engine="meico"?>' in text


def test_round_trip_keeps_namespaced_attributes() -> None:
    root = parse_document(MPM_WITH_METADATA)
    perf = next(query(root, of_kind("performance")))
    assert perf.get("{urn:example:ext}source") == "studio"
    again = parse_document(to_xml_string(root))
    assert next(query(again, of_kind("performance"))).get("{urn:example:ext}source") == "studio"


def test_comments_do_not_disturb_performance_traversal() -> None:
    perf = select_performance(parse_document(MPM_WITH_METADATA))
    assert [e.identifier for e in perf.curve_entries()] == ["t1"]


def test_write_and_load_keep_text(tmp_path) -> None:
    path = tmp_path / "meta.mpm"
    write_document(parse_document(MPM_WITH_METADATA), path)
    author = next(query(load_document(path), of_kind("author")))
    assert author.text == "Jane Doe"
