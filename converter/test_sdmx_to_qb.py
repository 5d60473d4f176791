#!/usr/bin/env python3
"""
Tests for sdmx_to_qb.py

Tests cover:
- DSD node and component specifications
- Kind -> property class / DSD edge mapping
- Dimension ordering with and without excluded components
- Concept links, copied labels and coded properties
- Not-found key families
"""

import unittest
import sys
from pathlib import Path

from rdflib import BNode, Literal, URIRef
from rdflib.namespace import RDF, RDFS, XSD

# Add this directory to path to import the converter modules
sys.path.insert(0, str(Path(__file__).parent))

import sdmx_locator as locator
import sdmx_to_qb as to_qb
from sdmx_naming import QB, code_list_uri, component_uri, concept_uri, dsd_uri

TESTDATA = Path(__file__).parent / "testdata"
SCHEME = "CENSUSHUB_CONCEPTS"


def dimension_orders(graph):
    """Map dimension property -> qb:order for every component specification"""
    orders = {}
    for spec in graph.subjects(RDF.type, QB.ComponentSpecification):
        prop = graph.value(spec, QB.dimension)
        if prop is not None:
            orders[prop] = graph.value(spec, QB.order).toPython()
    return orders


class TestDSDConversion(unittest.TestCase):
    """Test SDMX key family -> Data Cube DSD"""

    @classmethod
    def setUpClass(cls):
        cls.dsd_doc = locator.load_sdmx_document(TESTDATA / "keyfamilies.xml")
        cls.concepts_doc = locator.load_sdmx_document(TESTDATA / "concepts.xml")

    def setUp(self):
        self.graph = to_qb.convert_dsd(self.dsd_doc, self.concepts_doc, "HC55")
        self.dsd = URIRef(dsd_uri("HC55"))

    def test_dsd_node(self):
        g = self.graph
        self.assertIn((self.dsd, RDF.type, QB.DataStructureDefinition), g)
        self.assertEqual(g.value(self.dsd, RDFS.label), Literal("Population by sex and age", lang="en"))

    def test_components_attached_through_blank_specs(self):
        g = self.graph
        specs = list(g.objects(self.dsd, QB.component))
        # 6 dimensions, 1 measure, 1 attribute; the Group is skipped
        self.assertEqual(len(specs), 8)
        for spec in specs:
            self.assertIsInstance(spec, BNode)
            self.assertIn((spec, RDF.type, QB.ComponentSpecification), g)

    def test_property_classes(self):
        g = self.graph
        sex = URIRef(component_uri("SEX", "Dimension"))
        time = URIRef(component_uri("TIME", "TimeDimension"))
        value = URIRef(component_uri("OBS_VALUE", "PrimaryMeasure"))
        status = URIRef(component_uri("OBS_STATUS", "Attribute"))
        self.assertIn((sex, RDF.type, QB.DimensionProperty), g)
        self.assertIn((time, RDF.type, QB.DimensionProperty), g)
        self.assertIn((value, RDF.type, QB.MeasureProperty), g)
        self.assertIn((status, RDF.type, QB.AttributeProperty), g)
        for prop in (sex, time, value, status):
            self.assertIn((prop, RDF.type, RDF.Property), g)

    def test_spec_edges(self):
        g = self.graph
        self.assertEqual(len(list(g.subject_objects(QB.dimension))), 6)
        self.assertEqual(list(g.objects(None, QB.measure)), [URIRef(component_uri("OBS_VALUE", "PrimaryMeasure"))])
        self.assertEqual(list(g.objects(None, QB.attribute)), [URIRef(component_uri("OBS_STATUS", "Attribute"))])

    def test_dimension_order(self):
        orders = dimension_orders(self.graph)
        expected = {
            URIRef(component_uri("FREQ", "Dimension")): 1,
            URIRef(component_uri("CONF_STATUS", "Dimension")): 2,
            URIRef(component_uri("GEO", "Dimension")): 3,
            URIRef(component_uri("SEX", "Dimension")): 4,
            URIRef(component_uri("AGE", "Dimension")): 5,
            URIRef(component_uri("TIME", "TimeDimension")): 6,
        }
        self.assertEqual(orders, expected)

    def test_order_literal_type(self):
        g = self.graph
        for order in g.objects(None, QB.order):
            self.assertEqual(order.datatype, XSD.int)

    def test_measure_and_attribute_unordered(self):
        g = self.graph
        for spec in g.subjects(QB.measure, None):
            self.assertIsNone(g.value(spec, QB.order))
        for spec in g.subjects(QB.attribute, None):
            self.assertIsNone(g.value(spec, QB.order))

    def test_concept_and_label(self):
        g = self.graph
        sex = URIRef(component_uri("SEX", "Dimension"))
        self.assertEqual(g.value(sex, QB.concept), URIRef(concept_uri(SCHEME, "SEX")))
        self.assertEqual(g.value(sex, RDFS.label), Literal("Sex", lang="en"))

    def test_coded_properties(self):
        g = self.graph
        sex = URIRef(component_uri("SEX", "Dimension"))
        self.assertIn((sex, RDF.type, QB.CodedProperty), g)
        self.assertEqual(g.value(sex, QB.codeList), URIRef(code_list_uri("CL_SEX")))
        # Coded in the cross-domain scheme, which comes last
        status = URIRef(component_uri("OBS_STATUS", "Attribute"))
        self.assertEqual(g.value(status, QB.codeList), URIRef(code_list_uri("CL_OBS_STATUS")))

    def test_uncoded_property(self):
        g = self.graph
        geo = URIRef(component_uri("GEO", "Dimension"))
        self.assertNotIn((geo, RDF.type, QB.CodedProperty), g)
        self.assertIsNone(g.value(geo, QB.codeList))

    def test_not_found(self):
        with self.assertLogs(level="WARNING"):
            self.assertIsNone(to_qb.convert_dsd(self.dsd_doc, self.concepts_doc, "HC99"))

    def test_list_key_families(self):
        self.assertEqual(to_qb.list_key_families(self.dsd_doc), ["HC55"])


class TestExclusions(unittest.TestCase):
    """Test excluded components and renumbering"""

    @classmethod
    def setUpClass(cls):
        cls.dsd_doc = locator.load_sdmx_document(TESTDATA / "keyfamilies.xml")
        cls.concepts_doc = locator.load_sdmx_document(TESTDATA / "concepts.xml")

    def test_excluded_dimension_releases_its_order(self):
        g = to_qb.convert_dsd(self.dsd_doc, self.concepts_doc, "HC55", excluded_concepts=["CONF_STATUS"])
        orders = dimension_orders(g)
        self.assertNotIn(URIRef(component_uri("CONF_STATUS", "Dimension")), orders)
        self.assertEqual(orders[URIRef(component_uri("GEO", "Dimension"))], 2)
        self.assertEqual(sorted(orders.values()), [1, 2, 3, 4, 5])

    def test_excluded_component_absent(self):
        g = to_qb.convert_dsd(self.dsd_doc, self.concepts_doc, "HC55", excluded_concepts=["OBS_STATUS", "CONF_STATUS"])
        status = URIRef(component_uri("OBS_STATUS", "Attribute"))
        self.assertEqual(list(g.triples((status, None, None))), [])
        self.assertEqual(len(list(g.objects(URIRef(dsd_uri("HC55")), QB.component))), 6)


class TestConceptResolution(unittest.TestCase):
    """Test components whose concepts are not known"""

    KEY_FAMILY = """<Structure xmlns:structure="http://www.SDMX.org/resources/SDMXML/schemas/v2_0/structure">
      <structure:KeyFamily id="KF_TEST">
        <structure:Name>Test</structure:Name>
        <structure:Components>
          <structure:Dimension conceptRef="UNKNOWN_CONCEPT"/>
          <structure:Dimension/>
          <structure:CrossSectionalMeasure conceptRef="OBS_VALUE" code="X"/>
          <structure:Dimension conceptRef="SEX"/>
        </structure:Components>
      </structure:KeyFamily>
    </Structure>
    """

    def setUp(self):
        self.dsd_doc = locator.parse_sdmx_string(self.KEY_FAMILY)
        self.concepts_doc = locator.load_sdmx_document(TESTDATA / "concepts.xml")

    def test_unknown_concept_has_no_concept_edge(self):
        with self.assertLogs(level="WARNING"):
            g = to_qb.convert_dsd(self.dsd_doc, self.concepts_doc, "KF_TEST")
        prop = URIRef(component_uri("UNKNOWN_CONCEPT", "Dimension"))
        self.assertIn((prop, RDF.type, QB.DimensionProperty), g)
        self.assertIsNone(g.value(prop, QB.concept))
        self.assertIsNone(g.value(prop, RDFS.label))

    def test_skipped_components_do_not_consume_order(self):
        with self.assertLogs(level="WARNING"):
            g = to_qb.convert_dsd(self.dsd_doc, self.concepts_doc, "KF_TEST")
        orders = dimension_orders(g)
        self.assertEqual(orders[URIRef(component_uri("SEX", "Dimension"))], 2)
        self.assertEqual(len(orders), 2)

    def test_untagged_dsd_label(self):
        with self.assertLogs(level="WARNING"):
            g = to_qb.convert_dsd(self.dsd_doc, self.concepts_doc, "KF_TEST")
        label = g.value(URIRef(dsd_uri("KF_TEST")), RDFS.label)
        self.assertEqual(str(label), "Test")
        self.assertIsNone(label.language)

    def test_missing_concept_scheme(self):
        with self.assertLogs(level="WARNING"):
            g = to_qb.convert_dsd(self.dsd_doc, self.concepts_doc, "KF_TEST", concept_scheme_id="ABSENT")
        sex = URIRef(component_uri("SEX", "Dimension"))
        self.assertIsNone(g.value(sex, QB.concept))
        # Code list bindings do not depend on the labelling scheme
        self.assertEqual(g.value(sex, QB.codeList), URIRef(code_list_uri("CL_SEX")))


class TestLookupTables(unittest.TestCase):
    """Test the kind tables are read-only"""

    def test_tables_immutable(self):
        with self.assertRaises(TypeError):
            to_qb.COMPONENT_CLASSES["Group"] = QB.DimensionProperty

    def test_tables_agree(self):
        self.assertEqual(set(to_qb.COMPONENT_CLASSES), set(to_qb.COMPONENT_PROPERTIES))


def run_tests():
    """Run all tests"""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()
    suite.addTests(loader.loadTestsFromTestCase(TestDSDConversion))
    suite.addTests(loader.loadTestsFromTestCase(TestExclusions))
    suite.addTests(loader.loadTestsFromTestCase(TestConceptResolution))
    suite.addTests(loader.loadTestsFromTestCase(TestLookupTables))
    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)
    return 0 if result.wasSuccessful() else 1


if __name__ == "__main__":
    sys.exit(run_tests())
