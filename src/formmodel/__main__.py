"""Build a form model from JSON files and print it."""

import argparse
import sys
from pathlib import Path

from core import FormInputError, configure_logging, create_container, get_settings, safe_json_dumps

from .engine import FormEngine


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="formmodel", description="Reconcile schema, layout and data into a form model")
    parser.add_argument("--schema", dest="schema_file", help="JSON Schema file")
    parser.add_argument("--layout", dest="layout_file", help="Layout file (JSON list)")
    parser.add_argument("--data", dest="data_file", help="Initial data file")
    parser.add_argument("--ui-schema", dest="ui_schema_file", help="RJSF UISchema file")
    parser.add_argument("--form", dest="form_file", help="Combined form object file")
    parser.add_argument("--submit", action="store_true", help="Print final (submit) data instead of the model")
    parser.add_argument("--repair", action="store_true", help="Repair malformed JSON input files")
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.repair:
        settings = settings.model_copy(update={"repair_json": True})
    configure_logging(settings.log_level, settings.json_logs)

    inputs = {}
    for name, path in (
        ("schema", args.schema_file),
        ("layout", args.layout_file),
        ("data", args.data_file),
        ("UISchema", args.ui_schema_file),
        ("form", args.form_file),
    ):
        if path:
            inputs[name] = Path(path).read_text(encoding="utf-8")

    engine = create_container(settings).get(FormEngine)
    try:
        session = engine.initialize(inputs)
    except FormInputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.submit:
        output = {"data": session.submit(), "valid": session.is_valid, "errors": [e.model_dump() for e in session.errors]}
    else:
        context = session.context
        output = {
            "generation_id": context.generation_id,
            "compatibility": sorted(c.value for c in context.compatibility),
            "schema": context.json_schema,
            "circular_refs": context.circular_refs,
            "failures": [f.model_dump() for f in context.resolution_failures],
            "layout": [node.model_dump(exclude_defaults=True) for node in context.layout],
            "data_map": {k: v.model_dump(exclude_defaults=True) for k, v in context.data_map.items()},
            "array_map": session.array_map,
            "data": session.data,
        }
    print(safe_json_dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
