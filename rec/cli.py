"""Command-line interface for rec."""

from __future__ import annotations

import argparse
import getpass
import logging
import sys

import pyperclip
from dotenv import load_dotenv

from rec import __version__, credentials
from rec.config import KEYRING_NAMES, resolve_provider_config
from rec.correction import CorrectionClient
from rec.errors import DeviceError, InputError, RecError
from rec.logging_config import setup_logging
from rec.pipeline import Pipeline, PipelineResult, load_stores
from rec.status import StatusChannel
from rec.transcription import TranscriptionClient
from rec.vocabulary import VocabularyStore

logger = logging.getLogger(__name__)

DIM = "\x1b[90m"
RESET = "\x1b[0m"


def wait_for_enter() -> None:
    """Block until the user presses Enter (or stdin closes)."""
    sys.stdin.readline()


def copy_to_clipboard(text: str) -> bool:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        logger.warning(f"Clipboard copy failed: {exc}")
        return False
    logger.debug("Copied result to clipboard")
    return True


def add_word(word: str, status: StatusChannel) -> int:
    vocabulary = VocabularyStore.load()
    try:
        added = vocabulary.add_word(word)
    except ValueError as exc:
        raise InputError(str(exc)) from exc

    if added:
        status.line(f"Word added: {word.strip()}")
    else:
        status.line(f"Word already present: {word.strip()}")
    return 0


def set_key(name: str, status: StatusChannel, delete: bool = False) -> int:
    if delete:
        if credentials.forget_key(name):
            status.line(f"Removed {name} from the system keyring")
        else:
            status.line(f"{name} was not stored in the system keyring")
        return 0

    value = getpass.getpass(f"{name}: ")
    try:
        credentials.save_key(name, value)
    except ValueError as exc:
        raise InputError(str(exc)) from exc
    status.line(f"Stored {name} in the system keyring")
    return 0


def emit_result(
    result: PipelineResult, args: argparse.Namespace, status: StatusChannel
) -> None:
    """Write the transcript to stdout and any commentary to stderr."""
    status.clear()

    if not result.final_text:
        status.line("(silence or no text)")
        return

    if result.corrected_text is not None:
        if args.debug:
            print(f"Original:  {result.original_text}")
            print(f"Corrected: {result.corrected_text}")
            if result.explanation:
                status.line(f"Reason:    {result.explanation}")
            return
        if status.is_tty():
            status.line(f"{DIM}{result.original_text}{RESET}")
    elif args.debug and args.correct and not result.warnings:
        status.line("No correction needed")

    print(result.final_text)


def transcribe(args: argparse.Namespace, status: StatusChannel) -> int:
    vocabulary, history = load_stores()

    # Fails before any capture if a credential is missing
    config = resolve_provider_config(
        correct=args.correct,
        v2=args.v2,
        language=args.language,
        claude_model=vocabulary.claude_model,
    )

    corrector = None
    if args.correct:
        corrector = CorrectionClient(
            config.anthropic_api_key,
            model=config.claude_model,
            status=status,
            debug_logging=args.debug,
        )

    capture = None
    if args.file is None:
        # Imported lazily so file transcription works without PortAudio
        try:
            from rec.recorder import AudioCapture, AudioRecorder
        except (OSError, ImportError) as exc:
            # OSError: sounddevice could not load the PortAudio library
            raise DeviceError(f"Audio input unavailable: {exc}") from exc

        capture = AudioCapture(
            wait_for_enter, status=status, recorder=AudioRecorder(device=args.input_device)
        )

    pipeline = Pipeline(
        config,
        TranscriptionClient(status=status),
        vocabulary,
        history,
        corrector=corrector,
        capture=capture,
        status=status,
    )
    result = pipeline.run(file=args.file, correct=args.correct)

    emit_result(result, args, status)

    if args.clip and result.final_text:
        copy_to_clipboard(result.final_text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rec",
        description="Quick speech-to-text for devs. Press Enter to stop recording.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-f", "--file", default=None, help="Audio file to transcribe (instead of recording)")
    parser.add_argument("-c", "--clip", action="store_true", help="Copy result to clipboard")
    parser.add_argument("--correct", action="store_true", help="Correct transcription using Claude")
    parser.add_argument("--debug", action="store_true", help="Show Claude's correction comments and debug logs")
    parser.add_argument("--v2", action="store_true", help="Use the voxtral-mini-2602 model")
    parser.add_argument("--language", default=None, help="Language hint for transcription (e.g. en)")
    parser.add_argument("--input-device", default=None, help="Input device index or name substring")

    subparsers = parser.add_subparsers(dest="command")
    add_word_parser = subparsers.add_parser(
        "add-word", help="Add a custom word to the vocabulary (for Claude correction)"
    )
    add_word_parser.add_argument("word")

    set_key_parser = subparsers.add_parser("set-key", help="Store an API key in the system keyring")
    set_key_parser.add_argument("name", choices=KEYRING_NAMES)
    set_key_parser.add_argument("--delete", action="store_true", help="Remove the stored key instead")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if isinstance(args.input_device, str) and args.input_device.isdigit():
        args.input_device = int(args.input_device)

    load_dotenv()
    setup_logging(logging.DEBUG if args.debug else logging.WARNING)
    status = StatusChannel()

    try:
        if args.command == "add-word":
            return add_word(args.word, status)
        if args.command == "set-key":
            return set_key(args.name, status, delete=args.delete)
        return transcribe(args, status)
    except RecError as exc:
        status.line(f"Error: {exc}")
        return exc.exit_code
    except KeyboardInterrupt:
        status.line()
        return 130


if __name__ == "__main__":
    sys.exit(main())
