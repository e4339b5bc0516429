"""Text2MP3 console front-end.

Generates speech audio through the Edge "read aloud" service and manages the generated files.
Settings are read from ``text2mp3.ini`` when present; the proxy and the history are stored in
the data directory.

Examples:
    text2mp3 voices --locale zh
    text2mp3 say "Hello world" --voice en-US-AriaNeural --rate +10
    text2mp3 batch lines.txt
    text2mp3 history list
    text2mp3 proxy set --enable --type Socks5 --host 127.0.0.1 --port 1080
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from config.loader import ConfigLoader, ConfigLoaderError
from core.app import Text2Mp3App
from core.version import VERSION
from models.config_models import Config
from models.proxy_models import ProxyType
from models.voice_models import Prosody
from utils.errors import Text2Mp3Error
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from models.history_models import HistoryItem
    from models.voice_models import BatchProgress


CFG_FILE: Final[str] = "text2mp3.ini"

EXIT_OK: Final[int] = 0
EXIT_FAILURE: Final[int] = 1
EXIT_USAGE: Final[int] = 2

# listed first, in this order, by the locales command
COMMON_LOCALES: Final[tuple[str, ...]] = ("zh-CN", "zh-TW", "en-US", "en-GB", "ja-JP", "ko-KR")


def check_python_version() -> None:
    """Check if Python version is 3.13 or later.

    Raises:
        RuntimeError: If Python version is below 3.13.
    """
    if sys.version_info < (3, 13):
        msg = "Python 3.13 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(EXIT_USAGE)


class StdinConfirmer:
    """Asks on the console; ``assume_yes`` answers every question with yes."""

    def __init__(self, *, assume_yes: bool = False) -> None:
        self.assume_yes: bool = assume_yes

    async def confirm(self, prompt: str) -> bool:
        if self.assume_yes:
            return True
        try:
            answer: str = await asyncio.to_thread(input, f"{prompt} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in {"y", "yes"}


def _signed_int(value: str) -> int:
    """Prosody argument: ``10``, ``+10``, ``-5``, ``+10%`` or ``-5Hz``."""
    try:
        return int(value.strip().removesuffix("%").removesuffix("Hz"))
    except ValueError:
        msg = f"invalid signed integer: '{value}'"
        raise argparse.ArgumentTypeError(msg) from None


def _add_synthesis_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--voice", metavar="SHORT_NAME", help="Voice short name (default from the configuration)")
    parser.add_argument("--rate", type=_signed_int, metavar="PERCENT", help="Speaking rate change, e.g. +10")
    parser.add_argument("--volume", type=_signed_int, metavar="PERCENT", help="Volume change, e.g. -5")
    parser.add_argument("--pitch", type=_signed_int, metavar="HZ", help="Pitch change in Hz, e.g. +2")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="text2mp3",
        description="Convert text to speech audio with the Edge online voices",
        epilog='Example: text2mp3 say "Hello world" --voice en-US-AriaNeural',
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--config", metavar="FILE", help=f"Configuration file (default: {CFG_FILE} if present)")
    parser.add_argument("--data-dir", dest="data_dir", metavar="DIR", help="Override GENERAL.DATA_DIR")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    voices = commands.add_parser("voices", help="List the available voices")
    voices.add_argument("--locale", metavar="PREFIX", default="", help="Only voices whose locale starts with PREFIX")

    commands.add_parser("locales", help="List the locales that have voices")

    say = commands.add_parser("say", help="Synthesise a single text")
    say.add_argument("text", help="Text to speak")
    say.add_argument("-o", "--output", metavar="FILE", help="Also copy the audio to FILE")
    _add_synthesis_options(say)

    batch = commands.add_parser("batch", help="Synthesise every non-blank line of a file into its own audio file")
    batch.add_argument("input", metavar="FILE", help="Text file, '-' for standard input")
    _add_synthesis_options(batch)

    history = commands.add_parser("history", help="Manage generated audio files")
    history_commands = history.add_subparsers(dest="history_command", metavar="ACTION", required=True)
    history_commands.add_parser("list", help="List the history, newest first")
    export = history_commands.add_parser("export", help="Copy one audio file")
    export.add_argument("id", help="History item id (or a unique prefix)")
    export.add_argument("destination", metavar="FILE", help="Destination file")
    export_all = history_commands.add_parser("export-all", help="Copy every audio file into a directory")
    export_all.add_argument("directory", metavar="DIR", help="Destination directory")
    open_location = history_commands.add_parser("open", help="Show an audio file in the file manager")
    open_location.add_argument("id", help="History item id (or a unique prefix)")
    delete = history_commands.add_parser("delete", help="Delete an audio file and its history item")
    delete.add_argument("id", help="History item id (or a unique prefix)")
    history_commands.add_parser("clear", help="Delete every audio file and empty the history")

    proxy = commands.add_parser("proxy", help="Manage the proxy used for all provider traffic")
    proxy_commands = proxy.add_subparsers(dest="proxy_command", metavar="ACTION", required=True)
    proxy_commands.add_parser("show", help="Show the proxy configuration")
    proxy_set = proxy_commands.add_parser("set", help="Change proxy settings")
    enable = proxy_set.add_mutually_exclusive_group()
    enable.add_argument("--enable", dest="enabled", action="store_true", default=None, help="Enable the proxy")
    enable.add_argument("--disable", dest="enabled", action="store_false", help="Disable the proxy")
    proxy_set.add_argument("--type", dest="proxy_type", choices=[t.value for t in ProxyType], help="Proxy protocol")
    proxy_set.add_argument("--host", help="Proxy host")
    proxy_set.add_argument("--port", type=int, help="Proxy port")
    proxy_set.add_argument("--username", help="Proxy user name (empty to clear)")
    proxy_set.add_argument("--password", help="Proxy password (empty to clear)")
    proxy_commands.add_parser("toggle", help="Enable or disable the proxy")
    proxy_commands.add_parser("test", help="Check that the provider is reachable through the proxy")

    return parser


def load_config(args: argparse.Namespace) -> Config:
    """Load the configuration file and apply CLI overrides.

    Without ``--config`` a missing default file means built-in defaults.

    Raises:
        ConfigLoaderError: If the configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    overrides: dict[str, object] = {"debug": args.debug, "data_dir": args.data_dir}
    if args.config is None and not Path(CFG_FILE).exists():
        config = Config()
        config.GENERAL.SCRIPT_NAME = script_name
        ConfigLoader.apply_overrides(config, **overrides)
        ConfigLoader.validate(config)
        return config
    return ConfigLoader(config_filename=args.config or CFG_FILE, script_name=script_name, **overrides).config


def setup_logging(config: Config) -> None:
    """Log to ``LOG_FILE`` inside the data directory (absolute paths are used as is)."""
    log_file: str = ""
    if config.GENERAL.LOG_FILE.strip():
        data_dir: Path = FileUtils.resolve_path(config.GENERAL.DATA_DIR)
        data_dir.mkdir(parents=True, exist_ok=True)
        log_file = str(data_dir / Path(config.GENERAL.LOG_FILE).expanduser())
    logger_utils = LoggerUtils(log_file)
    if config.GENERAL.DEBUG:
        logger_utils.set_level("DEBUG")


def _prosody(app: Text2Mp3App, args: argparse.Namespace) -> Prosody:
    default: Prosody = app.default_prosody()
    return Prosody(
        rate=default.rate if args.rate is None else args.rate,
        volume=default.volume if args.volume is None else args.volume,
        pitch=default.pitch if args.pitch is None else args.pitch,
    )


def _resolve_item(app: Text2Mp3App, item_id: str) -> HistoryItem:
    """History item by id or unique id prefix (as printed by ``history list``)."""
    matches: list[HistoryItem] = [item for item in app.history.items if item.id.startswith(item_id)]
    if len(matches) == 1:
        return matches[0]
    # falls through to the store's own lookup error for unknown or ambiguous ids
    return app.history.get(item_id)


def _print_item(item: HistoryItem) -> None:
    stamp: str = item.created_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    print(f"{item.id[:8]}  {stamp}  {FileUtils.format_size(item.size):>9}  {item.name}  ({item.path})")


def _print_progress(progress: BatchProgress) -> None:
    print(f"\rProgress: {progress.current}/{progress.total}", end="\n" if progress.finished else "", flush=True)


async def cmd_voices(app: Text2Mp3App, args: argparse.Namespace) -> int:
    voices = app.voice_catalog.filter_by_locale_prefix(await app.refresh_voices(), args.locale)
    for voice in voices:
        print(f"{voice.short_name:<40} {voice.gender:<8} {voice.locale:<8} {voice.friendly_name}")
    print(f"\n{len(voices)} voices")
    return EXIT_OK


async def cmd_locales(app: Text2Mp3App, args: argparse.Namespace) -> int:
    _ = args
    await app.refresh_voices()
    locales: list[str] = app.voice_catalog.locales()
    for locale in COMMON_LOCALES:
        if locale in locales:
            print(f"{locale}  ({len(app.voice_catalog.by_locale(locale))} voices)")
    others: list[str] = [locale for locale in locales if locale not in COMMON_LOCALES]
    if others:
        print("\nOther locales: " + ", ".join(others))
    return EXIT_OK


async def cmd_say(app: Text2Mp3App, args: argparse.Namespace) -> int:
    item: HistoryItem = await app.generate_single(args.text, args.voice, _prosody(app, args))
    print(f"Generated {item.path} ({FileUtils.format_size(item.size)})")
    if args.output:
        destination: Path = FileUtils.resolve_path(args.output)
        await app.history.export_one(item, destination)
        print(f"Saved to {destination}")
    return EXIT_OK


async def cmd_batch(app: Text2Mp3App, args: argparse.Namespace) -> int:
    if args.input == "-":
        text: str = sys.stdin.read()
    else:
        try:
            text = FileUtils.resolve_path(args.input, strict=True).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as err:
            print(f"Error: cannot read '{args.input}': {err}", file=sys.stderr)
            return EXIT_FAILURE
    items: list[HistoryItem] = await app.generate_batch(text, args.voice, _prosody(app, args), _print_progress)
    for item in items:
        print(f"Generated {item.path} ({FileUtils.format_size(item.size)})")
    if items:
        print(f"Output directory: {items[0].file_path.parent}")
    return EXIT_OK


async def cmd_history(app: Text2Mp3App, args: argparse.Namespace) -> int:
    match args.history_command:
        case "list":
            for item in app.history.items:
                _print_item(item)
            print(f"\n{len(app.history)} items, {FileUtils.format_size(app.history.total_size())}")
        case "export":
            item: HistoryItem = _resolve_item(app, args.id)
            destination: Path = FileUtils.resolve_path(args.destination)
            await app.history.export_one(item, destination)
            print(f"Saved to {destination}")
        case "export-all":
            directory: Path = FileUtils.resolve_path(args.directory)
            summary = await app.history.export_all(directory)
            print(f"Exported {summary.success_count} of {summary.total} files to {directory}")
            for failure in summary.failures:
                print(f"  failed: {failure}", file=sys.stderr)
            return EXIT_FAILURE if summary.failures else EXIT_OK
        case "open":
            await app.history.open_location(_resolve_item(app, args.id).id)
        case "delete":
            item = _resolve_item(app, args.id)
            if await app.history.delete_one(item.id):
                print(f"Deleted {item.name}")
            else:
                print("Cancelled")
        case "clear":
            cleared = await app.history.clear_all()
            if cleared is None:
                print("Cancelled")
                return EXIT_OK
            print(f"Removed {cleared.removed_records} items, deleted {cleared.deleted_files} files")
            for failure in cleared.failures:
                print(f"  not deleted: {failure}", file=sys.stderr)
    return EXIT_OK


async def cmd_proxy(app: Text2Mp3App, args: argparse.Namespace) -> int:
    manager = app.proxy_manager
    match args.proxy_command:
        case "show":
            config = manager.get()
            print(f"Enabled: {'yes' if config.enabled else 'no'}")
            print(f"Proxy:   {config.masked_url()}")
        case "set":
            changes: dict[str, object] = {
                name: getattr(args, name)
                for name in ("enabled", "proxy_type", "host", "port", "username", "password")
                if getattr(args, name) is not None
            }
            config = await manager.update(**changes)
            print(f"Saved: {config.masked_url()} ({'enabled' if config.enabled else 'disabled'})")
        case "toggle":
            config = await manager.toggle()
            print(f"Proxy {'enabled' if config.enabled else 'disabled'}")
        case "test":
            print((await manager.test()).message)
    if warning := manager.get().streaming_warning:
        print(f"Warning: {warning}", file=sys.stderr)
    return EXIT_OK


COMMANDS: Final[dict[str, Callable[[Text2Mp3App, argparse.Namespace], Awaitable[int]]]] = {
    "voices": cmd_voices,
    "locales": cmd_locales,
    "say": cmd_say,
    "batch": cmd_batch,
    "history": cmd_history,
    "proxy": cmd_proxy,
}


async def main(argv: list[str] | None = None) -> int:
    """Parse the command line, run one command and return the exit status."""
    check_python_version()
    args: argparse.Namespace = build_parser().parse_args(argv)
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("Error: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(config)
    try:
        app: Text2Mp3App = Text2Mp3App.create(config, StdinConfirmer(assume_yes=args.yes))
    except Text2Mp3Error as err:
        print(f"Error: {err}", file=sys.stderr)
        return EXIT_FAILURE

    with app:
        try:
            return await COMMANDS[args.command](app, args)
        except Text2Mp3Error as err:
            print(f"Error: {err}", file=sys.stderr)
            return EXIT_FAILURE


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nCancelled by user.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
