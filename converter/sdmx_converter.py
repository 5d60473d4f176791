#!/usr/bin/env python3
# ----------------------------- requirements.txt -----------------------------
# rdflib==7.0.0
# ---------------------------------------------------------------------------

"""
SDMX 2.0 structure files -> SKOS / Data Cube RDF (Turtle).

Three conversions are available, each on one identifier:

- code list        -> SKOS concept scheme (codes as hierarchical skos:Concepts)
- concept scheme   -> SKOS concept scheme (flat)
- key family (DSD) -> qb:DataStructureDefinition

USAGE
------

    python sdmx_converter.py --code-list CL_AGE --output cl-age.ttl

    python sdmx_converter.py \
        --dsd HC55 \
        --exclude CONF_STATUS \
        --config /tmp/sdmx-config.json \
        --output dsd-hc55.ttl

    python sdmx_converter.py --list code-lists

Notes
-----
- The three source files and the base URI come from --config (JSON) and can be
  overridden one by one on the command line.
- Output "-" writes the serialized graph to stdout.
- --skip-invalid logs and skips codes/concepts lacking a Description or Name
  instead of failing the whole conversion.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from rdflib import Graph

from sdmx_locator import load_sdmx_document
from sdmx_naming import BASE_URI, DEFAULT_CONCEPT_SCHEME_ID, normalize_base_uri
from sdmx_to_qb import convert_dsd, list_key_families
from sdmx_to_skos import convert_code_list, convert_concept_scheme, list_code_lists, list_concept_schemes


DATA_DIR = Path("data")


@dataclass(frozen=True)
class ConverterConfig:
    """Locations of the SDMX structure files and naming settings."""

    code_lists_path: Path = DATA_DIR / "NonGeoCodeLists+ESTAT+1.0(0).xml"
    concepts_path: Path = DATA_DIR / "CENSUSHUB_CONCEPTS+ESTAT+1.0.xml"
    key_families_path: Path = DATA_DIR / "CENSUSHUB+ESTAT+KEYFAMILIES+1.0.xml"
    base_uri: str = BASE_URI
    concept_scheme_id: str = DEFAULT_CONCEPT_SCHEME_ID
    output_format: str = "turtle"


PATH_KEYS = ("code_lists_path", "concepts_path", "key_families_path")


def config_from_dict(payload: Dict[str, Any], base: Optional[ConverterConfig] = None) -> ConverterConfig:
    known = {f.name for f in fields(ConverterConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ValueError("Unknown configuration keys: " + ", ".join(unknown))

    values: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if key in PATH_KEYS:
            values[key] = Path(value)
        elif key == "base_uri":
            values[key] = normalize_base_uri(str(value))
        else:
            values[key] = str(value)
    return replace(base or ConverterConfig(), **values)


def load_config(path: Path) -> ConverterConfig:
    """Load a JSON configuration file; relative file paths resolve against its directory."""
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse configuration {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Configuration {path} must be a JSON object")

    for key in PATH_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and not Path(value).is_absolute():
            payload[key] = str(path.parent / value)
    logging.info(f"Loaded configuration from {path}")
    return config_from_dict(payload)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Set up logging configuration."""
    if quiet:
        level = logging.WARNING
    else:
        level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def write_graph(graph: Graph, out_path: Path, fmt: str = "turtle") -> None:
    """Serialize the graph to out_path, or to stdout when out_path is '-'."""
    target_path = str(out_path)
    logging.info(f"Writing RDF output to {target_path}")
    try:
        rdf_content = graph.serialize(format=fmt)
    except Exception as e:
        raise RuntimeError(f"Error serializing RDF as {fmt}: {e}") from e
    if target_path == "-":
        sys.stdout.write(rdf_content)
        if not rdf_content.endswith("\n"):
            sys.stdout.write("\n")
        sys.stdout.flush()
    else:
        Path(target_path).write_text(rdf_content, encoding="utf-8")
    logging.info("RDF output written successfully")


def run_code_list(config: ConverterConfig, code_list_id: str, strict: bool = True) -> Optional[Graph]:
    document = load_sdmx_document(config.code_lists_path)
    return convert_code_list(document, code_list_id, config.base_uri, strict=strict)


def run_concept_scheme(config: ConverterConfig, scheme_id: str, strict: bool = True) -> Optional[Graph]:
    document = load_sdmx_document(config.concepts_path)
    return convert_concept_scheme(document, scheme_id, config.base_uri, strict=strict)


def run_dsd(config: ConverterConfig, dsd_id: str, excluded: List[str]) -> Optional[Graph]:
    dsd_document = load_sdmx_document(config.key_families_path)
    concepts_document = load_sdmx_document(config.concepts_path)
    return convert_dsd(
        dsd_document,
        concepts_document,
        dsd_id,
        excluded_concepts=excluded,
        concept_scheme_id=config.concept_scheme_id,
        base_uri=config.base_uri,
    )


def list_entities(config: ConverterConfig, what: str) -> List[str]:
    if what == "code-lists":
        return list_code_lists(load_sdmx_document(config.code_lists_path))
    if what == "concept-schemes":
        return list_concept_schemes(load_sdmx_document(config.concepts_path))
    if what == "key-families":
        return list_key_families(load_sdmx_document(config.key_families_path))
    raise ValueError(f"Unknown entity kind to list: {what}")


def default_output(identifier: str) -> Path:
    return Path(identifier.strip().lower().replace("_", "-") + ".ttl")


# ------------------------------ CLI ------------------------------

def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="Convert SDMX 2.0 structural metadata to SKOS / Data Cube RDF.")
    target = p.add_mutually_exclusive_group()
    target.add_argument("--code-list", help="Identifier of the code list to convert to SKOS")
    target.add_argument("--concept-scheme", help="Identifier of the concept scheme to convert to SKOS")
    target.add_argument("--dsd", help="Identifier of the key family to convert to a Data Cube DSD")
    target.add_argument("--list", choices=("code-lists", "concept-schemes", "key-families"),
                        help="Print the identifiers available in the corresponding file")
    p.add_argument("--exclude", action="append", default=[], metavar="CONCEPT",
                   help="Concept of a DSD component to leave out (repeatable; --dsd only)")
    p.add_argument("--config", type=Path, help="Path to a JSON configuration file")
    p.add_argument("--code-lists-file", type=Path, help="SDMX file holding the code lists")
    p.add_argument("--concepts-file", type=Path, help="SDMX file holding the concept schemes")
    p.add_argument("--key-families-file", type=Path, help="SDMX file holding the key families")
    p.add_argument("--base-uri", help="Base URI for the minted resources")
    p.add_argument("--concept-scheme-id", help="Concept scheme used to label DSD components")
    p.add_argument("--output", "-o", type=Path, help="Output path ('-' for stdout; default derived from the identifier)")
    p.add_argument("--format", help="rdflib serialization format (default: turtle)")
    p.add_argument("--skip-invalid", action="store_true", help="Skip codes/concepts lacking a label instead of failing")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--quiet", action="store_true", help="Suppress console summary output")
    return p.parse_args(argv)


def resolve_config(args) -> ConverterConfig:
    config = load_config(args.config) if args.config else ConverterConfig()
    overrides = {
        "code_lists_path": args.code_lists_file,
        "concepts_path": args.concepts_file,
        "key_families_path": args.key_families_file,
        "base_uri": args.base_uri,
        "concept_scheme_id": args.concept_scheme_id,
        "output_format": args.format,
    }
    return config_from_dict(overrides, base=config)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if not (args.code_list or args.concept_scheme or args.dsd or args.list):
        print("[ERROR] Provide one of --code-list, --concept-scheme, --dsd or --list", file=sys.stderr)
        return 2
    if args.exclude and not args.dsd:
        print("[ERROR] --exclude only applies to --dsd", file=sys.stderr)
        return 2

    setup_logging(args.verbose, args.quiet)

    try:
        config = resolve_config(args)

        if args.list:
            for identifier in list_entities(config, args.list):
                print(identifier)
            return 0

        strict = not args.skip_invalid
        if args.code_list:
            identifier, graph = args.code_list, run_code_list(config, args.code_list, strict)
        elif args.concept_scheme:
            identifier, graph = args.concept_scheme, run_concept_scheme(config, args.concept_scheme, strict)
        else:
            identifier, graph = args.dsd, run_dsd(config, args.dsd, args.exclude)

        if graph is None:
            print(f"[ERROR] Nothing found with identifier {identifier}", file=sys.stderr)
            return 1

        output = args.output or default_output(identifier)
        write_graph(graph, output, config.output_format)
        if not args.quiet and str(output) != "-":
            print(f"[OK] Wrote {config.output_format} output: {output}")
            print(f"  triples={len(graph)}")
        logging.info("Conversion completed successfully")
        return 0

    except Exception as e:
        logging.error("Error during conversion: %s", e)
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
