#!/usr/bin/env python3
"""
CoMapeo Config - configuration bundle toolkit

Main entry point. Imports configuration bundles (.comapeocat, .mapeosettings,
zip), converts legacy Mapeo configurations, exports canonical archives and
talks to the remote catalog, build service and shared store.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from comapeo_config import __version__
from comapeo_config.config import config
from comapeo_config.exceptions import ComapeoConfigError
from comapeo_config.exporters import BuildClient
from comapeo_config.normalize import build_icon_map
from comapeo_config.remote import DefaultConfigCatalog
from comapeo_config.session import ConfigSession
from comapeo_config.storage import ConfigStore


def setup_logging():
    """Configure logging for the application."""
    level = getattr(logging, config.get("logging.level", "INFO").upper())
    format_str = config.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = config.log_filename

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file)
        ]
    )


def print_progress(percent: int, message: str):
    logging.info(f"[{percent:3d}%] {message}")


def import_file(path: str, strict: bool = False) -> ConfigSession:
    """
    Import a bundle file into a new session.

    Args:
        path: Path to a .comapeocat, .zip or .mapeosettings file
        strict: Fail on the first shape irregularity

    Returns:
        The session holding the imported configuration
    """
    session = ConfigSession(strict=strict or None)
    data = Path(path).read_bytes()
    session.import_archive(data, filename=Path(path).name, progress=print_progress)
    return session


def default_output_path(session: ConfigSession) -> Path:
    name = session.config.metadata.name or config.default_config_name
    safe_name = ''.join(c if c.isalnum() or c in '-_' else '_' for c in name)
    return Path(config.export_directory) / f"{safe_name}.zip"


def write_export(session: ConfigSession, output: str | None, build: bool) -> Path:
    """Export the session, optionally through the build service, and write it to disk."""
    archive = session.export_archive()
    output_path = Path(output) if output else default_output_path(session)

    if build:
        with BuildClient() as client:
            archive = client.build(archive, filename=output_path.name)
        output_path = output_path.with_suffix(".comapeocat")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(archive)
    logging.info(f"Wrote {output_path}")
    return output_path


def command_inspect(args):
    session = import_file(args.file, strict=args.strict)
    configuration = session.config

    summary = {
        "name": configuration.metadata.name,
        "version": configuration.metadata.version,
        "fileVersion": configuration.metadata.file_version,
        "buildDate": configuration.metadata.build_date,
        "isMapeo": session.is_mapeo,
        "fields": len(configuration.fields),
        "presets": len(configuration.presets),
        "locales": sorted(configuration.translations),
        "assets": len(session.assets),
        "icons": sorted(build_icon_map(session.assets)),
        "degradations": [str(notice) for notice in session.degradations],
    }
    if args.locale:
        summary["translatedFields"] = {
            field.id: {
                "label": configuration.translated_label(args.locale, field.id),
                "helperText": configuration.translated_helper_text(args.locale, field.id),
            }
            for field in configuration.fields
        }
        summary["translatedPresets"] = {
            preset.id: configuration.translated_preset_name(args.locale, preset.id)
            for preset in configuration.presets
        }
    if args.json:
        print(json.dumps(configuration.to_document(), indent=2, ensure_ascii=False))
    else:
        print(json.dumps(summary, indent=2, ensure_ascii=False))


def command_convert(args):
    session = import_file(args.file, strict=args.strict)
    path = write_export(session, args.output, args.build)
    print(f"✅ Exported {path}")


def command_sample(args):
    session = ConfigSession()
    session.import_sample()
    path = write_export(session, args.output, build=False)
    print(f"✅ Exported sample configuration to {path}")


def command_catalog(args):
    repositories = None
    if args.repository:
        repository = config.get_repository(args.repository)
        if repository is None:
            raise ComapeoConfigError(f"Unknown catalog repository: {args.repository}")
        repositories = [repository]
    catalog = DefaultConfigCatalog(repositories=repositories)
    options = asyncio.run(catalog.list_options())

    if not options:
        print("No default configurations available")
        return

    if args.download is None:
        for index, option in enumerate(options):
            print(f"[{index}] {option.name} - {option.formatted_size} ({option.release_tag}, {option.release_date})")
        return

    if not 0 <= args.download < len(options):
        raise ComapeoConfigError(f"No catalog entry with index {args.download}")
    option = options[args.download]
    data = asyncio.run(catalog.download(option, progress=print_progress))
    file_name = option.comapeocat_in_zip or option.file_name
    output_path = Path(args.output) if args.output else Path(config.export_directory) / Path(file_name).name
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    print(f"✅ Downloaded {option.name} to {output_path}")


def command_share(args):
    session = import_file(args.file, strict=args.strict)
    with ConfigStore() as store:
        hash_id = session.save_to_store(store)
    print(hash_id)


def command_load(args):
    session = ConfigSession()
    with ConfigStore() as store:
        if session.load_from_store(store, args.hash_id) is None:
            raise ComapeoConfigError(f"No stored configuration with hash {args.hash_id}")
    if args.output:
        path = write_export(session, args.output, build=False)
        print(f"✅ Exported {path}")
    else:
        print(json.dumps(session.config.to_document(), indent=2, ensure_ascii=False))


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="CoMapeo Config - configuration bundle toolkit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py inspect config.comapeocat          # Summarize a bundle
  python main.py convert old.mapeosettings -o new.zip   # Convert a Mapeo bundle
  python main.py convert config.zip --build         # Export and build a .comapeocat
  python main.py sample                             # Export the sample configuration
  python main.py catalog                            # List published default configurations
  python main.py catalog --download 0               # Download one of them
  python main.py share config.comapeocat            # Save to the shared store, print the hash
  python main.py load 1a2b3c4d5e -o shared.zip      # Export a shared configuration
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"CoMapeo Config {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_import_arguments(sub):
        sub.add_argument("file", help="Bundle to import (.comapeocat, .zip or .mapeosettings)")
        sub.add_argument(
            "--strict",
            action="store_true",
            help="Fail on the first shape irregularity instead of recovering"
        )

    inspect_parser = subparsers.add_parser("inspect", help="Summarize a configuration bundle")
    add_import_arguments(inspect_parser)
    inspect_parser.add_argument("--json", action="store_true", help="Print the full canonical document")
    inspect_parser.add_argument("--locale", help="Also show field and preset texts translated to this locale")
    inspect_parser.set_defaults(handler=command_inspect)

    convert_parser = subparsers.add_parser("convert", help="Import a bundle and export a canonical archive")
    add_import_arguments(convert_parser)
    convert_parser.add_argument("-o", "--output", help="Output path (defaults to the export directory)")
    convert_parser.add_argument("--build", action="store_true", help="Send the archive to the build service")
    convert_parser.set_defaults(handler=command_convert)

    sample_parser = subparsers.add_parser("sample", help="Export the built-in sample configuration")
    sample_parser.add_argument("-o", "--output", help="Output path (defaults to the export directory)")
    sample_parser.set_defaults(handler=command_sample)

    catalog_parser = subparsers.add_parser("catalog", help="List or download published default configurations")
    catalog_parser.add_argument("--download", type=int, metavar="INDEX", help="Download the entry with this index")
    catalog_parser.add_argument("-o", "--output", help="Output path for the download")
    catalog_parser.add_argument("--repository", help="Only query the configured repository with this name")
    catalog_parser.set_defaults(handler=command_catalog)

    share_parser = subparsers.add_parser("share", help="Save a bundle to the shared store")
    add_import_arguments(share_parser)
    share_parser.set_defaults(handler=command_share)

    load_parser = subparsers.add_parser("load", help="Load a configuration from the shared store")
    load_parser.add_argument("hash_id", help="Hash id printed by the share command")
    load_parser.add_argument("-o", "--output", help="Export to this path instead of printing the document")
    load_parser.set_defaults(handler=command_load)

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging()

    logging.info("CoMapeo Config - configuration bundle toolkit")

    try:
        args.handler(args)
    except ComapeoConfigError as e:
        logging.error(f"{args.command} failed: {e}")
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logging.error(f"{args.command} failed: {e}")
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
