#!/usr/bin/env python3
"""
Shrinkray - interactive batch video encoder

Re-encodes every video under a working folder to HEVC with HandBrakeCLI or
ffmpeg (CPU or GPU), showing a live progress line with an ETA for each file and
a size summary at the end.

Menu flow:
1. Encode        -> pick an encoder family, encode every input file
2. Show config   -> print current settings
3. Edit config   -> change one setting and save it
4. Advanced      -> analyze inputs, fix subtitle flags, clean temp files
5. Check updates -> compare installed tools with upstream releases
"""

import argparse
import sys
from pathlib import Path
from typing import Callable, List, Optional

from shrinkray import __version__, advanced, updates
from shrinkray.config import ConfigError, Settings, describe, load_settings, save_settings, setting_keys, \
    update_setting
from shrinkray.encode import CancelToken, EncoderFamily, EncodingSession, family_by_index
from shrinkray.keyboard import KeypressWatcher
from shrinkray.media import MediaProbe, list_input_files
from shrinkray.utils import CONFIG_FILE, CONSOLE_LOG_LEVEL, LOG_RETENTION_DAYS, LogLevel, logger, system_util
from shrinkray.utils.file_util import set_root_folders

MAIN_MENU = """
=== Shrinkray ===
1. Encode
2. Show config
3. Edit config
4. Advanced
5. Check updates
Q. Quit"""

ADVANCED_MENU = """
--- Advanced ---
1. Analyze input files
2. Fix subtitle default flags
3. Clean temp files
B. Back"""


def _level_from_name(name: str) -> LogLevel:
    try:
        return LogLevel[name.upper()]
    except KeyError:
        return LogLevel.INFO


class Shrinkray:
    """Interactive front end; holds the current settings and working folders."""

    def __init__(self, root: Path, settings: Settings, config_path: Path,
                 input_fn: Optional[Callable[[str], str]] = None):
        self.root = root
        self.settings = settings
        self.config_path = config_path
        self.input_fn = input_fn or input
        self.probe = MediaProbe()

    # ---- folders -------------------------------------------------------

    def setup_directories(self) -> None:
        """Create the working folders; raises OSError when that is impossible."""
        set_root_folders(self.root, self.settings.output_dir, self.settings.holding_dir, self.settings.temp_dir)
        self.configure_logging()

    def configure_logging(self) -> None:
        if self.settings.enable_logging:
            logger.configure_file_sink(self.root / self.settings.log_dir, LOG_RETENTION_DAYS)
        else:
            logger.configure_file_sink(None)

    def excluded_dirs(self) -> List[Path]:
        s = self.settings
        return [self.root / name for name in (s.output_dir, s.holding_dir, s.temp_dir, s.log_dir, s.tools_dir)]

    def input_files(self) -> List[Path]:
        return list_input_files(self.root, self.excluded_dirs())

    def _ask(self, prompt: str) -> str:
        return self.input_fn(prompt).strip()

    # ---- main loop -----------------------------------------------------

    def run(self) -> None:
        while True:
            logger.safe_print(MAIN_MENU)
            try:
                if not self._dispatch(self._ask("Select: ").lower()):
                    break
            except EOFError:
                # stdin closed
                break
        logger.log("app.exit", LogLevel.DEBUG)

    def _dispatch(self, choice: str) -> bool:
        """Run one main menu entry. Returns False when the user quits."""
        if choice == "1":
            self.encode_menu()
        elif choice == "2":
            self.show_config()
        elif choice == "3":
            self.edit_config()
        elif choice == "4":
            self.advanced_menu()
        elif choice == "5":
            self.check_for_updates()
        elif choice == "q":
            return False
        else:
            logger.safe_print(f"Unknown option: {choice!r}")
        return True

    # ---- encode --------------------------------------------------------

    def choose_family(self) -> Optional[EncoderFamily]:
        logger.safe_print("\n--- Encoding method ---")
        for index, family in enumerate(EncoderFamily, 1):
            logger.safe_print(f"{index}. {family.label} (quality {family.quality(self.settings)})")
        logger.safe_print("B. Back")
        while True:
            choice = self._ask("Select: ").lower()
            if choice == "b":
                return None
            if choice in ("1", "2", "3", "4"):
                return family_by_index(int(choice))
            logger.safe_print(f"Unknown option: {choice!r}")

    def encode_menu(self) -> None:
        family = self.choose_family()
        if family is None:
            return
        if not system_util.has_binary(family.executable):
            logger.log("encode.missing_tool", LogLevel.ERROR, executable=family.executable)
            logger.safe_print(f"'{family.executable}' was not found on PATH. Use 'Check updates' to get it.")
            return
        self.encode(family)

    def encode(self, family: EncoderFamily) -> None:
        files = self.input_files()
        if not files:
            logger.safe_print(f"No video files found under {self.root}")
            return

        token = CancelToken()
        session = EncodingSession(self.settings, self.root, probe=self.probe, cancel_token=token)
        logger.safe_print(f"\n{len(files)} file(s) with {family.label}. "
                          f"Press '{self.settings.cancel_key}' to cancel the batch.")
        with KeypressWatcher(token, self.settings.cancel_key):
            session.run(files, family)

    # ---- config --------------------------------------------------------

    def show_config(self) -> None:
        logger.safe_print(f"\n--- Settings ({self.config_path}) ---")
        for key, value in describe(self.settings).items():
            logger.safe_print(f"{key:<22} = {value}")

    def edit_config(self) -> None:
        keys = setting_keys()
        logger.safe_print("\n--- Edit config ---")
        for index, key in enumerate(keys, 1):
            logger.safe_print(f"{index:>2}. {key} = {describe(self.settings)[key]}")
        choice = self._ask("Setting number (blank to cancel): ")
        if not choice:
            return
        if not choice.isdigit() or not 1 <= int(choice) <= len(keys):
            logger.safe_print(f"Unknown setting: {choice!r}")
            return
        key = keys[int(choice) - 1]

        raw_value = self._ask(f"New value for {key}: ")
        try:
            updated = update_setting(self.settings, key, raw_value)
            save_settings(updated, self.config_path)
        except ConfigError as e:
            logger.log("config.rejected", LogLevel.WARN, key=key, error=str(e))
            return

        self.settings = updated
        logger.log("config.saved", LogLevel.INFO, key=key, value=describe(updated)[key])
        if key in ("output_dir", "holding_dir", "temp_dir", "log_dir", "enable_logging"):
            try:
                self.setup_directories()
            except OSError as e:
                logger.log("config.folder_failed", LogLevel.ERROR, key=key, error=str(e))

    # ---- advanced ------------------------------------------------------

    def advanced_menu(self) -> None:
        while True:
            logger.safe_print(ADVANCED_MENU)
            choice = self._ask("Select: ").lower()
            if choice == "1":
                files = self.input_files()
                if not files:
                    logger.safe_print(f"No video files found under {self.root}")
                    continue
                advanced.analyze(files, self.probe, self.settings)
            elif choice == "2":
                self.fix_subtitles()
            elif choice == "3":
                files, logs = advanced.clean_temp(self.root / self.settings.temp_dir,
                                                  self.root / self.settings.log_dir)
                logger.safe_print(f"Removed {files} temp file(s) and {logs} old log file(s).")
            elif choice == "b":
                return
            else:
                logger.safe_print(f"Unknown option: {choice!r}")

    def fix_subtitles(self) -> None:
        if not system_util.has_binary("ffmpeg"):
            logger.log("subfix.missing_tool", LogLevel.ERROR, executable="ffmpeg")
            return
        output_root = self.root / self.settings.output_dir
        files = list_input_files(output_root) if output_root.exists() else []
        if not files:
            logger.safe_print(f"No encoded files found under {output_root}")
            return
        fixed, skipped, failed = advanced.fix_subtitle_flags(files, self.probe, self.root / self.settings.temp_dir)
        logger.safe_print(f"Subtitle flags: fixed={fixed} unchanged={skipped} failed={failed}")

    # ---- updates -------------------------------------------------------

    def check_for_updates(self) -> None:
        results = updates.check_updates()
        logger.safe_print("\n--- Tool versions ---")
        for result in results:
            line = f"{result.tool:<13} installed: {result.installed or 'not found'}  latest: {result.latest or '?'}"
            if result.error:
                line += f"  ({result.error})"
            elif result.update_available:
                line += "  <- update available"
            logger.safe_print(line)

        for result in results:
            if not (result.update_available and result.download_url):
                continue
            answer = self._ask(f"Download {result.tool} {result.latest}? [y/N]: ").lower()
            if answer != "y":
                continue
            dest = self.root / self.settings.tools_dir / result.download_url.rsplit("/", 1)[-1]
            try:
                updates.download_asset(result.download_url, dest)
            except (updates.UpdateCheckError, OSError) as e:
                logger.log("update.download_failed", LogLevel.ERROR, tool=result.tool, error=str(e))
                continue
            logger.safe_print(f"Saved to {dest}. Install it and make sure {result.tool} is on PATH.")


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Interactive batch video encoder for HandBrakeCLI and ffmpeg",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Open the menu for the current folder
  %(prog)s /path/to/videos          # Work on another folder
  %(prog)s --method 2               # Encode everything with HandBrake GPU, no menu
  %(prog)s --log-level DEBUG        # Enable debug logging
        """,
    )

    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Working folder containing the videos to encode (default: current folder)",
    )

    parser.add_argument(
        "--config",
        help=f"Config file to use (default: {CONFIG_FILE} in the working folder)",
    )

    parser.add_argument(
        "--method",
        type=int,
        choices=[1, 2, 3, 4],
        help="Encode all files with this method and exit (1 HandBrake CPU, 2 HandBrake GPU, "
             "3 FFmpeg CPU, 4 FFmpeg GPU)",
    )

    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARN", "ERROR"],
        default=_level_from_name(CONSOLE_LOG_LEVEL).name,
        help="Console logging level (default: INFO)",
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()
    logger.set_log_level(LogLevel[args.log_level])

    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        logger.log("startup.error", LogLevel.ERROR, error=f"not a folder: {root}")
        sys.exit(2)
    config_path = Path(args.config).expanduser() if args.config else root / CONFIG_FILE

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        logger.log("startup.error", LogLevel.ERROR, error=str(e))
        sys.exit(2)

    app = Shrinkray(root, settings, config_path)
    try:
        app.setup_directories()
    except OSError as e:
        logger.log("startup.error", LogLevel.ERROR, error=f"Could not create working folders: {e}")
        sys.exit(2)
    logger.log("app.start", LogLevel.DEBUG, version=__version__, root=str(root), config=str(config_path))

    try:
        if args.method:
            family = family_by_index(args.method)
            system_util.which_or_die(family.executable)
            app.encode(family)
        else:
            app.run()
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(1)
    finally:
        logger.configure_file_sink(None)


if __name__ == "__main__":
    main()
