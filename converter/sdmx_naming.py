#!/usr/bin/env python3
# ----------------------------- requirements.txt -----------------------------
# rdflib==7.0.0
# ---------------------------------------------------------------------------

"""
Naming rules for the resources minted from SDMX structural metadata.

Every URI is built from a base URI and a few path segments derived from SDMX
identifiers. The derivation is pure: the same identifiers always give the same
URI, so independent conversion runs link up without any shared state.

    concepts/{scheme}/scheme          SKOS concept scheme for a concept scheme
    concepts/{scheme}/{concept}       SKOS concept
    codes/{list}/list                 SKOS concept scheme for a code list
    codes/{list}/{code}               SKOS concept for a code
    structure/dsd/{dsd}               qb:DataStructureDefinition
    structure/{kind}/{concept}        qb:ComponentProperty
"""

from __future__ import annotations

from rdflib import Namespace


# ---- Vocabularies ----
SKOS = Namespace("http://www.w3.org/2004/02/skos/core#")
QB = Namespace("http://purl.org/linked-data/cube#")

BASE_URI = "http://linked-open-statistics.org/metadata/"

# Identifier of the generic concept scheme shared by the Census Hub key families
DEFAULT_CONCEPT_SCHEME_ID = "CENSUSHUB_CONCEPTS"


def component_name(sdmx_id: str) -> str:
    """Turn an underscore-delimited SDMX identifier into camel case.

    OBS_STATUS -> obsStatus, CL_AGE -> clAge, HC55 -> hc55
    """
    name = "".join(term.capitalize() for term in sdmx_id.split("_"))
    if not name:
        return name
    return name[0].lower() + name[1:]


def path_segment(identifier: str) -> str:
    return component_name(identifier.strip().lower())


def normalize_base_uri(base_uri: str) -> str:
    return base_uri.rstrip("/") + "/"


def mint_uri(base_uri: str, *segments: str) -> str:
    """Join already-derived path segments under the base URI."""
    return normalize_base_uri(base_uri) + "/".join(segments)


def concept_scheme_uri(scheme_id: str, base_uri: str = BASE_URI) -> str:
    return mint_uri(base_uri, "concepts", path_segment(scheme_id), "scheme")


def concept_uri(scheme_id: str, concept_id: str, base_uri: str = BASE_URI) -> str:
    return mint_uri(base_uri, "concepts", path_segment(scheme_id), path_segment(concept_id))


def code_list_uri(list_id: str, base_uri: str = BASE_URI) -> str:
    return mint_uri(base_uri, "codes", path_segment(list_id), "list")


def code_uri(list_id: str, code_id: str, base_uri: str = BASE_URI) -> str:
    return mint_uri(base_uri, "codes", path_segment(list_id), path_segment(code_id))


def dsd_uri(dsd_id: str, base_uri: str = BASE_URI) -> str:
    return mint_uri(base_uri, "structure", "dsd", path_segment(dsd_id))


def component_uri(concept_id: str, component_type: str, base_uri: str = BASE_URI) -> str:
    # TimeDimension -> structure/timedimension/...
    return mint_uri(base_uri, "structure", path_segment(component_type), path_segment(concept_id))
