from xml.dom import minidom

import pytest

from conftest import NO_RESULTS_XML, RESULTS_XML
from ofeed_connector.transform import TransformError, update_or_insert_ids


def person_ids(xml):
    doc = minidom.parseString(xml)
    ids = []
    for person in doc.getElementsByTagName("Person"):
        children = [
            n for n in person.childNodes
            if n.nodeType == n.ELEMENT_NODE and n.tagName == "Id"
        ]
        ids.append([c.firstChild.data for c in children])
    return ids


def test_inserts_sequential_ids_before_name():
    output = update_or_insert_ids(RESULTS_XML)

    assert person_ids(output) == [["1"], ["2"]]

    doc = minidom.parseString(output)
    person = doc.getElementsByTagName("Person")[0]
    elements = [n.tagName for n in person.childNodes if n.nodeType == n.ELEMENT_NODE]
    assert elements == ["Id", "Name"]


def test_keeps_xml_declaration_and_namespace():
    output = update_or_insert_ids(RESULTS_XML)
    assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
    assert 'xmlns="http://www.orienteering.org/datastandard/3.0"' in output


def test_preserves_indentation():
    output = update_or_insert_ids(RESULTS_XML)
    assert "      <Person>\n        <Id>1</Id>\n        <Name>" in output


def test_overwrites_existing_ids_instead_of_duplicating():
    xml = """<?xml version="1.0" encoding="UTF-8"?>
<ResultList>
  <PersonResult><Person><Id>77</Id><Name><Given>A</Given></Name></Person></PersonResult>
  <PersonResult><Person><Name><Given>B</Given></Name></Person></PersonResult>
  <PersonResult><Person><Id type="SI">5</Id><Name><Given>C</Given></Name></Person></PersonResult>
</ResultList>
"""
    output = update_or_insert_ids(xml)
    assert person_ids(output) == [["1"], ["2"], ["3"]]
    assert '<Id type="SI">3</Id>' in output


def test_running_twice_renumbers_from_one():
    once = update_or_insert_ids(RESULTS_XML)
    twice = update_or_insert_ids(once)
    assert person_ids(twice) == [["1"], ["2"]]
    assert twice == once


def test_numbering_restarts_per_document():
    update_or_insert_ids(RESULTS_XML)
    output = update_or_insert_ids(RESULTS_XML)
    assert person_ids(output) == [["1"], ["2"]]


def test_document_without_persons_is_unchanged_in_structure():
    output = update_or_insert_ids(NO_RESULTS_XML)
    doc = minidom.parseString(output)
    assert doc.documentElement.tagName == "ResultList"
    assert doc.getElementsByTagName("Person").length == 0
    assert doc.getElementsByTagName("Id").length == 0


def test_person_without_name_gets_id_appended():
    output = update_or_insert_ids("<ResultList><Person><Sex>F</Sex></Person></ResultList>")
    assert "<Person><Sex>F</Sex><Id>1</Id></Person>" in output


def test_id_outside_person_children_is_not_touched():
    xml = "<R><Person><Name>A</Name><Organisation><Id>9</Id></Organisation></Person></R>"
    output = update_or_insert_ids(xml)
    assert "<Person><Id>1</Id><Name>A</Name><Organisation><Id>9</Id></Organisation></Person>" in output


@pytest.mark.parametrize("bad", [
    "",
    "<ResultList><PersonResult></ResultList>",
    "not xml at all",
])
def test_malformed_input_raises_transform_error(bad):
    with pytest.raises(TransformError):
        update_or_insert_ids(bad)
