#!/usr/bin/env python3
# ----------------------------- requirements.txt -----------------------------
# rdflib==7.0.0
# ---------------------------------------------------------------------------

"""
SDMX 2.0 key families -> W3C Data Cube data structure definitions.

Each component of the key family becomes a qb:ComponentProperty attached to
the DSD through an anonymous qb:ComponentSpecification. Properties point to
their SKOS concept (labelled from the concept scheme) and, for coded concepts,
to the SKOS concept scheme of their code list. Dimensions are numbered with
qb:order in document order, excluded components left out of the count.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from types import MappingProxyType
from typing import Iterable, List, Optional

from rdflib import BNode, Graph, Literal, URIRef
from rdflib.namespace import RDF, RDFS, XSD

from sdmx_locator import list_identifiers, local_name, locate, require_attribute, require_child, text_literal
from sdmx_naming import (
    BASE_URI,
    DEFAULT_CONCEPT_SCHEME_ID,
    QB,
    SKOS,
    code_list_uri,
    component_uri,
    concept_uri,
    dsd_uri,
)
from sdmx_to_skos import convert_concept_scheme, get_coded_concepts


# ---- SDMX component kind -> Data Cube property class ----
COMPONENT_CLASSES = MappingProxyType({
    "Dimension": QB.DimensionProperty,
    "TimeDimension": QB.DimensionProperty,
    "PrimaryMeasure": QB.MeasureProperty,
    "Attribute": QB.AttributeProperty,
})

# ---- SDMX component kind -> ComponentSpecification edge ----
COMPONENT_PROPERTIES = MappingProxyType({
    "Dimension": QB.dimension,
    "TimeDimension": QB.dimension,
    "PrimaryMeasure": QB.measure,
    "Attribute": QB.attribute,
})


def new_qb_graph() -> Graph:
    g = Graph()
    g.bind("rdf", RDF); g.bind("rdfs", RDFS); g.bind("xsd", XSD); g.bind("qb", QB); g.bind("skos", SKOS)
    return g


def convert_dsd(
    dsd_document: ET.Element,
    concepts_document: ET.Element,
    dsd_id: str,
    excluded_concepts: Iterable[str] = (),
    concept_scheme_id: str = DEFAULT_CONCEPT_SCHEME_ID,
    base_uri: str = BASE_URI,
) -> Optional[Graph]:
    """Convert a SDMX key family into a Data Cube data structure definition.

    Components whose conceptRef is in excluded_concepts are left out entirely.
    Concept labels and code list bindings come from concepts_document, which is
    always read in full (scheme concept_scheme_id for labels, every scheme for
    coded representations). Returns None when no KeyFamily has the identifier.
    """
    lookup = locate(dsd_document, "KeyFamily", dsd_id)
    if not lookup.found:
        logging.warning(f"Returning no graph for key family {dsd_id}")
        return None

    key_family = lookup.element
    dsd_identifier = require_attribute(key_family, "id", dsd_id)
    dsd_name = require_child(key_family, "Name", dsd_identifier)
    excluded = set(excluded_concepts)

    concept_graph = convert_concept_scheme(concepts_document, concept_scheme_id, base_uri, strict=False)
    if concept_graph is None:
        logging.warning(f"Concept scheme {concept_scheme_id} unavailable, components will have no concept")
        concept_graph = Graph()
    coded_concepts = get_coded_concepts(concepts_document)

    g = new_qb_graph()
    dsd_node = URIRef(dsd_uri(dsd_identifier, base_uri))
    logging.info(f"Creating DSD {dsd_name.text} with URI {dsd_node}")
    g.add((dsd_node, RDF.type, QB.DataStructureDefinition))
    g.add((dsd_node, RDFS.label, text_literal(dsd_name)))

    components_elem = require_child(key_family, "Components", dsd_identifier)
    dimension_order = 1
    for component in list(components_elem):
        component_type = local_name(component.tag)
        concept_id = component.attrib.get("conceptRef")
        logging.debug(f"Found SDMX component of type {component_type} referring to concept {concept_id}")

        if component_type not in COMPONENT_CLASSES:
            logging.debug(f"Component type {component_type} has no Data Cube counterpart, skipping")
            continue
        if not concept_id:
            logging.warning(f"{component_type} component of {dsd_identifier} has no conceptRef, skipping")
            continue
        concept_id = concept_id.strip()
        if concept_id in excluded:
            logging.debug(f"Component {concept_id} is excluded from the Data Cube DSD")
            continue

        property_class = COMPONENT_CLASSES[component_type]
        prop = URIRef(component_uri(concept_id, component_type, base_uri))
        g.add((prop, RDF.type, property_class))
        g.add((prop, RDF.type, RDF.Property))

        concept = URIRef(concept_uri(concept_scheme_id, concept_id, base_uri))
        if (concept, RDF.type, SKOS.Concept) in concept_graph:
            g.add((prop, QB.concept, concept))
            for label in concept_graph.objects(concept, SKOS.prefLabel):
                g.add((prop, RDFS.label, label))
        else:
            logging.warning(f"Concept {concept_id} not found in concept scheme {concept_scheme_id}")

        code_list_id = coded_concepts.get(concept_id)
        if code_list_id:
            g.add((prop, RDF.type, QB.CodedProperty))
            g.add((prop, QB.codeList, URIRef(code_list_uri(code_list_id, base_uri))))

        spec = BNode()
        g.add((spec, RDF.type, QB.ComponentSpecification))
        g.add((spec, COMPONENT_PROPERTIES[component_type], prop))
        if property_class == QB.DimensionProperty:
            g.add((spec, QB.order, Literal(dimension_order, datatype=XSD.int)))
            dimension_order += 1
        g.add((dsd_node, QB.component, spec))

    logging.info(f"Key family {dsd_identifier} converted to Data Cube ({dimension_order - 1} dimensions)")
    return g


def list_key_families(document: ET.Element) -> List[str]:
    return list_identifiers(document, "KeyFamily")
