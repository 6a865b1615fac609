"""Command-line interface for the reflc shader reflector."""

import argparse
import logging
import sys
from pathlib import Path



def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="reflc",
        description="Reflect a SPIR-V assembly shader into C++ layout sources",
    )
    parser.add_argument("input", nargs="?", help="Input .spvasm file")
    parser.add_argument(
        "-o", "--output-dir", type=Path, default=None,
        help="Output directory (default: same as input file)",
    )
    parser.add_argument(
        "--shader-name", type=str, default=None,
        help="Shader name used in generated code (default: input file stem)",
    )
    parser.add_argument(
        "--header-file-name", type=str, default=None,
        help="Name of the generated header (default: <stem>.h)",
    )
    parser.add_argument(
        "--template-dir", type=Path, default=None,
        help="Directory with reflection.h.j2/reflection.cc.j2 overriding the built-in templates",
    )
    parser.add_argument(
        "--no-json",
        action="store_true",
        help="Skip .json reflection document emission",
    )
    parser.add_argument(
        "--dump-document", action="store_true",
        help="Print the reflection document as JSON and exit",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--version", action="version", version="reflc 0.1.0"
    )

    args = parser.parse_args(argv)

    if args.verbose >= 2:
        log_level = logging.DEBUG
    elif args.verbose == 1:
        log_level = logging.INFO
    else:
        log_level = logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.input is None:
        parser.print_help()
        sys.exit(0)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    source = input_path.read_text(encoding="utf-8")
    stem = input_path.stem
    output_dir = args.output_dir or input_path.parent

    from reflc.compiler import reflect_source

    try:
        reflect_source(
            source=source,
            stem=stem,
            output_dir=output_dir,
            shader_name=args.shader_name,
            header_file_name=args.header_file_name,
            template_dir=args.template_dir,
            emit_json=not args.no_json,
            dump_document=args.dump_document,
        )
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
