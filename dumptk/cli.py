# dumptk/cli.py

import argparse
import sys

from . import config
from .naming import DEFAULT_TEMPLATE, OutputFileNamer, TemplateError


def checkup(config_file=None) -> int:
    """Print config health. Returns 1 if anything failed."""
    print("Config Health")
    print("-" * 40)
    results = config.diagnose_config(config_file)
    for status, msg in results:
        print(f"{status} {msg}")
    return 1 if any(status == '✗' for status, _ in results) else 0


def render_names(template: str, db: str, table: str, index: int = 0, count: int = 3,
                 extension: str = '') -> int:
    """Print the names a file namer would hand out for one chunk."""
    try:
        namer = OutputFileNamer(template, db, table, index)
        for _ in range(count):
            print(namer.next_name() + extension)
    except TemplateError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog='dumptk', description='dumptk command-line utilities')
    parser.add_argument('--config', help='Config file path')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # checkup
    subparsers.add_parser('checkup', help='Check dump settings and configuration issues')

    # render-names
    names_parser = subparsers.add_parser('render-names', help='Preview data file names for a template')
    names_parser.add_argument('template', nargs='?', default=None,
                              help=f"Output file template (default: dump.output_file_template, "
                                   f"else '{DEFAULT_TEMPLATE}')")
    names_parser.add_argument('--db', required=True, help='Database name')
    names_parser.add_argument('--table', required=True, help='Table name')
    names_parser.add_argument('--index', type=int, default=0, help='Chunk index to start from')
    names_parser.add_argument('--count', type=int, default=3, help='Number of names to render')
    names_parser.add_argument('--ext', choices=['sql', 'csv'], help='Append a file extension')

    args = parser.parse_args(argv)

    if args.command == 'checkup':
        return checkup(args.config)
    elif args.command == 'render-names':
        template = args.template or config.get_setting('dump.output_file_template', DEFAULT_TEMPLATE,
                                                       config_file=args.config)
        extension = f".{args.ext}" if args.ext else ''
        return render_names(template, args.db, args.table, args.index, args.count, extension)


if __name__ == '__main__':
    sys.exit(main())
