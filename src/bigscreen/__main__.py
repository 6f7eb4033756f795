"""BigScreen main module.

License: GNU General Public License v3 (GPLv3)
"""

import argparse
import json
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError
from slidesource import ConfigError, PlacementInternalError, format_arguments

from .app import App


def _parser():
    """Return command line parser."""
    parser = argparse.ArgumentParser(prog="bigscreen", description='BigScreen slideshow aggregation.')
    parser.add_argument('--config', type=str, default=None, help="path of the configuration file")
    commands = parser.add_subparsers(dest='command')

    slides = commands.add_parser('slides', help="print the slide sequence")
    slides.add_argument('--json', action='store_const', const=True, default=False)

    sources = commands.add_parser('sources', help="list enabled slide sources")
    sources.add_argument('--all', action='store_const', const=True, default=False)

    commands.add_parser('modules', help="list source modules")

    add = commands.add_parser('add', help="add slide source")
    add.add_argument('module', type=str)
    add.add_argument('args', type=str, help="arguments as 'key=value;key=value'")
    add.add_argument('--notes', type=str, default=None)
    add.add_argument('--disabled', action='store_const', const=True, default=False)

    edit = commands.add_parser('edit', help="change slide source")
    edit.add_argument('id', type=int)
    edit.add_argument('--module', type=str, default=None)
    edit.add_argument('--args', type=str, default=None)
    edit.add_argument('--notes', type=str, default=None)

    for command in ('enable', 'disable', 'remove'):
        sub = commands.add_parser(command, help=f"{command} slide source")
        sub.add_argument('id', type=int)

    return parser


def _print_source(config):
    checked = config.last_checked.strftime("%Y-%m-%d %H:%M") if config.last_checked else "never"
    status = "on" if config.enabled else "off"
    print(f"{config.id:>4}  {config.name:<14} {status:<3}  {checked:<16}  {format_arguments(config.arguments)}")


def _run(app, args):
    """Execute command on application."""
    registry = app.registry
    if args.command == 'slides':
        plan = app.slides()
        if args.json:
            print(json.dumps(plan, indent=2))
        else:
            print("\n\n".join(plan))
    elif args.command == 'sources':
        for config in registry.list_sources(enabled_only=not args.all):
            _print_source(config)
    elif args.command == 'modules':
        for module, name, description in registry.list_modules():
            print(f"{module:<12} {name:<14} {description or ''}")
    elif args.command == 'add':
        _print_source(registry.create_source(args.module, args.args, notes=args.notes, enabled=not args.disabled))
    elif args.command == 'edit':
        _print_source(registry.update_source(args.id, module=args.module, arguments=args.args, notes=args.notes))
    elif args.command in ('enable', 'disable'):
        registry.set_enabled(args.id, args.command == 'enable')
    elif args.command == 'remove':
        registry.delete_source(args.id)


def main(argv=None):
    """Run BigScreen command line interface.

    :param argv: command line arguments (default: sys.argv)
    :type argv: list of str
    :return: exit status
    :rtype: int
    """
    parser = _parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    app = None
    try:
        app = App(config_path=args.config)
        _run(app, args)
    except ConfigError as e:
        logging.error(f"App: Configuration error. {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except PlacementInternalError as e:
        logging.critical(f"App: Unable to build slideshow. {e}")
        print("Error: unable to build slideshow", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        logging.critical(f"App: Slide source database error. {e}")
        print(f"Error: slide source database error: {e}", file=sys.stderr)
        return 1
    finally:
        if app is not None:
            app.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
